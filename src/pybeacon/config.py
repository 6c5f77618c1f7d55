"""Service configuration for pybeacon."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from pybeacon._constants import (
    CAPTURE_SUBDIR,
    DEFAULT_GEO_CACHE_TTL_SECONDS,
    DEFAULT_GEO_SERVICE_TIMEOUT,
    DEFAULT_GEO_SERVICE_URL,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_RETENTION_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    LOG_SUBDIR,
)
from pybeacon.exceptions import BeaconConfigError
from pybeacon.state.policy import CoordinatePolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise BeaconConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BeaconConfig:
    """Service configuration.

    Parameters
    ----------
    data_dir : str
        Root directory for the event log and captured images. Relative
        paths are resolved against the current working directory.
    retention_seconds : float
        How long a device stays "currently seen" after its last beacon.
        Defaults to 24 hours.
    geo_cache_ttl_seconds : float
        Lifetime of a cached geolocation result. Defaults to 1 hour.
    sweep_interval_seconds : float
        Interval of the background eviction / cache sweep. Defaults to
        1 hour. Set to ``0`` to disable the background task.
    geo_city_db : str or None
        Path to a MaxMind GeoLite2/GeoIP2 City database. The local
        database lookup is skipped when unset.
    geo_asn_db : str or None
        Optional MaxMind ASN database used to fill in the ISP.
    geo_service_enabled : bool
        Enable the network geolocation fallback.
    geo_service_url : str
        URL template for the network lookup; ``{address}`` is substituted.
    geo_service_timeout : float
        Upper bound in seconds for one network lookup.
    coordinate_policy : CoordinatePolicy
        Precedence between beacon and resolver coordinates.
    log_retention_days : int
        Day partitions older than this are removed by ``prune``.
    log_fsync : bool
        ``fsync`` every log append before it is acknowledged.
    host : str
        Bind address of the bundled HTTP transport.
    port : int
        Bind port of the bundled HTTP transport.
    admin_auth : str
        ``user:password`` accepted by the bundled Basic authorizer.
    """

    data_dir: str = "data"
    retention_seconds: float = DEFAULT_RETENTION_SECONDS
    geo_cache_ttl_seconds: float = DEFAULT_GEO_CACHE_TTL_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    geo_city_db: str | None = None
    geo_asn_db: str | None = None
    geo_service_enabled: bool = True
    geo_service_url: str = DEFAULT_GEO_SERVICE_URL
    geo_service_timeout: float = DEFAULT_GEO_SERVICE_TIMEOUT
    coordinate_policy: CoordinatePolicy = CoordinatePolicy.RESOLVER_FIRST
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS
    log_fsync: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    admin_auth: str = "admin:secret"

    @property
    def data_path(self) -> Path:
        path = Path(self.data_dir)
        return path if path.is_absolute() else Path.cwd() / path

    @property
    def log_dir(self) -> Path:
        return self.data_path / LOG_SUBDIR

    @property
    def capture_dir(self) -> Path:
        return self.data_path / CAPTURE_SUBDIR

    @property
    def retention(self) -> timedelta:
        return timedelta(seconds=self.retention_seconds)

    @property
    def geo_cache_ttl(self) -> timedelta:
        return timedelta(seconds=self.geo_cache_ttl_seconds)

    @classmethod
    def from_env(cls, **overrides: Any) -> BeaconConfig:
        """Create configuration from environment variables.

        Reads the ``BEACON_*`` variables plus ``PORT`` and ``ADMIN_AUTH``.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BeaconConfig
            Populated configuration.

        Raises
        ------
        BeaconConfigError
            If a numeric variable or the coordinate policy is malformed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "BEACON_DATA_DIR": "data_dir",
            "BEACON_GEOIP_CITY_DB": "geo_city_db",
            "BEACON_GEOIP_ASN_DB": "geo_asn_db",
            "BEACON_GEO_SERVICE_URL": "geo_service_url",
            "BEACON_HOST": "host",
            "ADMIN_AUTH": "admin_auth",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "BEACON_RETENTION_SECONDS": "retention_seconds",
            "BEACON_GEO_CACHE_TTL": "geo_cache_ttl_seconds",
            "BEACON_SWEEP_INTERVAL": "sweep_interval_seconds",
            "BEACON_GEO_SERVICE_TIMEOUT": "geo_service_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, float)

        _ENV_INT_MAP = {
            "BEACON_LOG_RETENTION_DAYS": "log_retention_days",
            "PORT": "port",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, int)

        if "geo_service_enabled" not in overrides:
            config_kwargs["geo_service_enabled"] = _env_bool(env.get("BEACON_GEO_SERVICE_ENABLED"), True)
        if "log_fsync" not in overrides:
            config_kwargs["log_fsync"] = _env_bool(env.get("BEACON_LOG_FSYNC"), False)

        policy_env = env.get("BEACON_COORDINATE_POLICY")
        if policy_env is not None and "coordinate_policy" not in overrides:
            try:
                config_kwargs["coordinate_policy"] = CoordinatePolicy(policy_env.strip().lower())
            except ValueError as exc:
                raise BeaconConfigError(f"Unknown coordinate policy {policy_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
