"""Internal constants shared across the library."""

USER_AGENT = "pybeacon/1.0"

UNKNOWN = "Unknown"

#: Addresses that always resolve to the local development placeholder.
LOCAL_ADDRESSES: frozenset[str] = frozenset({"127.0.0.1", "::1", "0.0.0.0", "::"})

#: IPv4-mapped IPv6 prefix stripped during address normalization.
IPV4_MAPPED_PREFIX = "::ffff:"

#: Identity used when the transport could not determine a client address.
UNKNOWN_IDENTITY = "unknown"

DEFAULT_RETENTION_SECONDS: float = 24 * 3600
DEFAULT_GEO_CACHE_TTL_SECONDS: float = 3600
DEFAULT_SWEEP_INTERVAL_SECONDS: float = 3600
DEFAULT_GEO_SERVICE_URL = "http://ip-api.com/json/{address}"
DEFAULT_GEO_SERVICE_TIMEOUT: float = 5.0
DEFAULT_LOG_RETENTION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 10

# ------------------------------------------------------------------
# On-disk layout
# ------------------------------------------------------------------

LOG_SUBDIR = "logs"
CAPTURE_SUBDIR = "captures"
LOG_PARTITION_PREFIX = "devices_"
LOG_PARTITION_SUFFIX = ".jsonl"
LOG_PARTITION_DATE_FORMAT = "%Y-%m-%d"
CAPTURE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
CAPTURE_SUFFIX = ".jpg"
