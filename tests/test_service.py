from __future__ import annotations

import base64
from datetime import timedelta

import pytest

from pybeacon.config import BeaconConfig
from pybeacon.exceptions import BeaconError
from pybeacon.models.log_entry import LogKind
from pybeacon.service import BeaconService

JPEG_BYTES = b"\xff\xd8\xff\xe0service-test"


def _config(tmp_path, **overrides) -> BeaconConfig:
    values = {"data_dir": str(tmp_path), "geo_service_enabled": False, "sweep_interval_seconds": 0}
    values.update(overrides)
    return BeaconConfig(**values)


@pytest.mark.asyncio
async def test_operations_require_start(tmp_path, clock) -> None:
    service = BeaconService(_config(tmp_path), clock=clock)

    assert service.is_running is False
    with pytest.raises(BeaconError):
        await service.ingest("8.8.8.8", None, {})
    with pytest.raises(BeaconError):
        _ = service.resolver


@pytest.mark.asyncio
async def test_lifecycle_is_idempotent(tmp_path, clock) -> None:
    service = BeaconService(_config(tmp_path, sweep_interval_seconds=3600), clock=clock)

    await service.start()
    resolver = service.resolver
    await service.start()
    assert service.resolver is resolver
    assert service.is_running

    await service.close()
    await service.close()
    assert service.is_running is False


@pytest.mark.asyncio
async def test_ingest_get_and_list(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path), clock=clock) as service:
        await service.ingest("::ffff:10.0.0.1", None, {"battery": {"level": 0.3}})
        clock.advance(seconds=5)
        await service.ingest("10.0.0.2", None, {})

        assert service.get_device("::ffff:10.0.0.1") is not None
        assert service.get_device("10.0.0.99") is None
        assert [r.identity for r in service.list_devices()] == ["10.0.0.2", "10.0.0.1"]

        history = await service.history("10.0.0.1", kind=LogKind.DEVICE)
        assert len(history) == 1
        assert history[0].data["battery"]["level"] == 0.3


@pytest.mark.asyncio
async def test_capture_is_attached_and_readable(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path), clock=clock) as service:
        await service.ingest("10.0.0.1", None, {})
        encoded = "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode("ascii")

        filename = await service.save_capture("10.0.0.1", encoded)

        record = service.get_device("10.0.0.1")
        assert record is not None
        assert record.last_image_ref == filename
        assert await service.read_capture("10.0.0.1") == JPEG_BYTES
        assert (tmp_path / "captures" / filename).read_bytes() == JPEG_BYTES


@pytest.mark.asyncio
async def test_capture_without_session_is_kept_but_not_attached(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path), clock=clock) as service:
        filename = await service.save_capture("10.0.0.5", JPEG_BYTES)

        assert (tmp_path / "captures" / filename).exists()
        assert service.attach_image("10.0.0.5", filename) is False
        assert await service.read_capture("10.0.0.5") is None


@pytest.mark.asyncio
async def test_run_maintenance_evicts_expired_sessions(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path, retention_seconds=60), clock=clock) as service:
        await service.ingest("10.0.0.1", None, {})
        clock.advance(seconds=30)
        await service.ingest("10.0.0.2", None, {})
        clock.advance(seconds=45)

        evicted, _ = service.run_maintenance()

        assert evicted == 1
        assert len(service.store) == 1
        assert [r.identity for r in service.list_devices()] == ["10.0.0.2"]


@pytest.mark.asyncio
async def test_prune_logs_uses_configured_retention(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path, log_retention_days=2), clock=clock) as service:
        for _ in range(4):
            await service.ingest("10.0.0.1", None, {})
            clock.advance(days=1)
        clock.advance(days=-1)

        removed = await service.prune_logs()

        assert [p.name for p in removed] == ["devices_2026-01-01.jsonl"]
        assert len(service.log.partitions()) == 3
        assert len(await service.prune_logs(0)) == 2


@pytest.mark.asyncio
async def test_missing_address_shares_identity_between_ingest_and_capture(tmp_path, clock) -> None:
    async with BeaconService(_config(tmp_path), clock=clock) as service:
        record = await service.ingest(None, None, {})

        filename = await service.save_capture("", JPEG_BYTES)

        assert record.identity == "unknown"
        assert filename.startswith("unknown_")
        stored = service.get_device("")
        assert stored is not None
        assert stored.last_image_ref == filename
        assert await service.read_capture("unknown") == JPEG_BYTES
