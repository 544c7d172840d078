"""Tests for the in-process session store."""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from bloggers.core.modules.device.memory import MemorySessionStore
from bloggers.core.modules.device.models import Device
from bloggers.utils import now


def make_device(user_id, refresh_token="token-1", expires_in=timedelta(days=7), **kwargs):
    return Device(
        user_id=user_id,
        title="pytest-agent",
        ip="10.0.0.1",
        refresh_token=refresh_token,
        expires_at=now() + expires_in,
        **kwargs,
    )


@pytest.fixture
def store():
    return MemorySessionStore()


class TestCreateAndFind:
    def test_roundtrip(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))

        found = asyncio.run(store.find_by_device_id(device.device_id))
        assert found == device

    def test_duplicate_device_id_rejected(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))
        with pytest.raises(ValueError, match="already exists"):
            asyncio.run(store.create(device))

    def test_returned_device_is_a_copy(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))

        found = asyncio.run(store.find_by_device_id(device.device_id))
        found.refresh_token = "tampered"
        assert asyncio.run(store.find_by_device_id(device.device_id)).refresh_token == "token-1"

    def test_find_by_user_id_most_recent_first(self, store):
        user_id = uuid4()
        older = make_device(user_id, last_active_date=now() - timedelta(hours=1))
        newer = make_device(user_id, last_active_date=now())
        asyncio.run(store.create(older))
        asyncio.run(store.create(newer))
        asyncio.run(store.create(make_device(uuid4())))

        devices = asyncio.run(store.find_by_user_id(user_id))
        assert [d.device_id for d in devices] == [newer.device_id, older.device_id]


class TestUpdateRefreshToken:
    def test_unconditional_update(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))
        expires_at = now() + timedelta(days=14)

        assert asyncio.run(store.update_refresh_token(device.device_id, "token-2", expires_at)) is True

        found = asyncio.run(store.find_by_device_id(device.device_id))
        assert found.refresh_token == "token-2"
        assert found.expires_at == expires_at

    def test_matching_expected_token(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))
        updated = asyncio.run(store.update_refresh_token(device.device_id, "token-2", now(), expected_token="token-1"))
        assert updated is True

    def test_stale_expected_token(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))
        asyncio.run(store.update_refresh_token(device.device_id, "token-2", now()))

        updated = asyncio.run(store.update_refresh_token(device.device_id, "token-3", now(), expected_token="token-1"))

        assert updated is False
        assert asyncio.run(store.find_by_device_id(device.device_id)).refresh_token == "token-2"

    def test_missing_device(self, store):
        assert asyncio.run(store.update_refresh_token(uuid4(), "token-2", now())) is False


class TestDelete:
    def test_delete_by_device_id(self, store):
        device = make_device(uuid4())
        asyncio.run(store.create(device))

        assert asyncio.run(store.delete_by_device_id(device.device_id)) is True
        assert asyncio.run(store.delete_by_device_id(device.device_id)) is False

    def test_delete_other_devices_keeps_current_and_foreign(self, store):
        user_id = uuid4()
        current = make_device(user_id)
        others = [make_device(user_id) for _ in range(2)]
        foreign = make_device(uuid4())
        for device in [current, *others, foreign]:
            asyncio.run(store.create(device))

        assert asyncio.run(store.delete_other_devices_by_user_id(user_id, current.device_id)) == 2

        assert [d.device_id for d in asyncio.run(store.find_by_user_id(user_id))] == [current.device_id]
        assert asyncio.run(store.find_by_device_id(foreign.device_id)) is not None

    def test_delete_expired_devices(self, store):
        live = make_device(uuid4())
        expired = make_device(uuid4(), expires_in=timedelta(seconds=-1))
        asyncio.run(store.create(live))
        asyncio.run(store.create(expired))

        assert asyncio.run(store.delete_expired_devices()) == 1
        assert asyncio.run(store.find_by_device_id(expired.device_id)) is None
        assert asyncio.run(store.find_by_device_id(live.device_id)) is not None
