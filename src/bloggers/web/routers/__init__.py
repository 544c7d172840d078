from bloggers.web.routers.auth import router as auth_router
from bloggers.web.routers.security import router as security_router

__all__ = [
    "auth_router",
    "security_router",
]
