"""Project-wide constants (wire parameter names, default limits)."""

PARAM_COLLECTION = "collection"
PARAM_TTL = "ttl"
PARAM_COUNT = "count"
PARAM_REPLICATION = "replication"
PARAM_DATA_CENTER = "dataCenter"
PARAM_VOLUME_ID = "volumeId"
PARAM_MOD_TIME = "ts"

# The master reads the vacuum threshold from the lower-camel query name.
PARAM_GARBAGE_THRESHOLD = "garbageThreshold"

DIR_LOOKUP_PATH = "/dir/lookup"
DIR_ASSIGN_PATH = "/dir/assign"
DIR_STATUS_PATH = "/dir/status"
CLUSTER_STATUS_PATH = "/cluster/status"
VOL_GROW_PATH = "/vol/grow"
VOL_VACUUM_PATH = "/vol/vacuum"
COL_DELETE_PATH = "/col/delete"
SUBMIT_PATH = "/submit"

DEFAULT_MASTER_URL = "http://localhost:9333"
DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_MAX_FILE_SIZE_BYTES: int = 512 * 1024 * 1024  # 512 MiB
DEFAULT_TIMEOUT_SECONDS = 30

LOCATION_CACHE_TTL_SECONDS = 5 * 60
LOCATION_CACHE_SWEEP_INTERVAL_SECONDS = 10 * 60

# First attempt uses the location cache, the second bypasses it.
MAX_LOCATION_ATTEMPTS = 2

DOWNLOAD_CHUNK_SIZE_BYTES = 64 * 1024
