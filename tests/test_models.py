from __future__ import annotations

import json
from datetime import UTC, datetime

from pybeacon.models import BeaconBody, DeviceInfo, DeviceRecord, Location, LocationInfo, LocationSource
from pybeacon.models.telemetry import BatteryStatus


def test_empty_beacon_is_fully_defaulted() -> None:
    body = BeaconBody.parse({})

    assert body.battery.level == 0.0
    assert body.battery.charging is False
    assert body.network.type == "Unknown"
    assert body.network.downlink == 0.0
    assert body.memory.total == 0.0
    assert body.system.cpu_usage == 0.0
    assert body.data.pair is None


def test_non_mapping_beacon_is_treated_as_empty() -> None:
    assert BeaconBody.parse(["junk"]) == BeaconBody()
    assert BeaconBody.parse(None) == BeaconBody()


def test_malformed_sections_fall_back_to_defaults() -> None:
    body = BeaconBody.parse(
        {
            "battery": "full",
            "network": {"type": "", "downlink": "--"},
            "system": {"cpuUsage": "12.5", "memoryUsage": None, "uptime": -1},
        }
    )

    assert body.battery == BatteryStatus()
    assert body.network.type == "Unknown"
    assert body.network.downlink == 0.0
    assert body.system.cpu_usage == 12.5
    assert body.system.memory_usage == 0.0
    assert body.system.uptime == 0.0


def test_camel_case_and_effective_type_aliases() -> None:
    body = BeaconBody.parse({"network": {"effectiveType": "4g", "downlink": 10}, "system": {"cpu_usage": 3}})

    assert body.network.type == "4g"
    assert body.network.downlink == 10.0
    assert body.system.cpu_usage == 3.0


def test_scalar_memory_is_total() -> None:
    body = BeaconBody.parse({"memory": 8})
    assert body.memory.total == 8.0
    assert body.memory.used == 0.0


def test_negative_battery_level_resets_to_default() -> None:
    body = BeaconBody.parse({"battery": {"level": -1, "charging": "true"}})
    assert body.battery.level == 0.0
    assert body.battery.charging is True


def test_client_coordinates_require_both_values() -> None:
    assert BeaconBody.parse({"data": {"lat": "52.1"}}).data.pair is None
    assert BeaconBody.parse({"data": {"lat": 52.1, "lon": "4.3"}}).data.pair == (52.1, 4.3)


def test_device_record_json_uses_camel_case_and_iso_timestamp() -> None:
    record = DeviceRecord(
        identity="8.8.8.8",
        device=DeviceInfo(browser="Chrome 120.0.0"),
        location=Location(ip="8.8.8.8"),
        timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
        last_image_ref="8.8.8.8_2026-01-01_12-00-00.jpg",
    )

    dumped = record.to_json_dict()

    assert dumped["lastImageRef"] == "8.8.8.8_2026-01-01_12-00-00.jpg"
    assert dumped["system"] == {"cpuUsage": 0.0, "memoryUsage": 0.0, "uptime": 0.0}
    assert dumped["timestamp"].startswith("2026-01-01T12:00:00")
    restored = DeviceRecord.model_validate(json.loads(json.dumps(dumped)))
    assert restored.model_dump() == record.model_dump()


def test_naive_timestamps_are_taken_as_utc() -> None:
    record = DeviceRecord(identity="a", timestamp=datetime(2026, 1, 1, 12, 0))
    assert record.timestamp.tzinfo is not None
    assert record.timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_location_info_coerces_missing_values() -> None:
    info = LocationInfo.model_validate({"city": None, "country": "NL", "lat": "52.3", "lon": None})

    assert info.city == "Unknown"
    assert info.country == "NL"
    assert info.lat_lon == (52.3, 0.0)
    assert info.source == LocationSource.PLACEHOLDER
