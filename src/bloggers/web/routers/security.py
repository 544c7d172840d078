from fastapi import APIRouter

from bloggers.core.modules.device.models import DeviceView
from bloggers.web.deps import AppDep, SessionIdentityDep
from bloggers.web.openapi import ErrorResponse

router = APIRouter(tags=["security"])


@router.get(
    "/security/devices",
    summary="List active sessions",
    description="Get all device sessions of the current user.",
    operation_id="listDevices",
    responses={
        200: {"description": "Active sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_devices(app: AppDep, identity: SessionIdentityDep) -> list[DeviceView]:
    return await app.get_devices(identity)


@router.delete(
    "/security/devices",
    summary="End other sessions",
    description="End every session of the current user except the one making the request.",
    operation_id="deleteOtherDevices",
    status_code=204,
    responses={
        204: {"description": "Other sessions ended"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def delete_other_devices(app: AppDep, identity: SessionIdentityDep) -> None:
    await app.delete_other_devices(identity)


@router.delete(
    "/security/devices/{device_id}",
    summary="End session",
    description="End a single session of the current user.",
    operation_id="deleteDevice",
    status_code=204,
    responses={
        204: {"description": "Session ended"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session belongs to another user"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def delete_device(device_id: str, app: AppDep, identity: SessionIdentityDep) -> None:
    await app.delete_device(identity, device_id)
