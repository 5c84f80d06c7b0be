"""Application constants."""

USER_AGENT = "sat-vector-tiles/0.3 (+vector tile updater)"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
DEFAULT_PAGE_SIZE = 1000
DEFAULT_CONCURRENCY = 1
PROGRESS_EVERY = 1000
ANTIMERIDIAN_JUMP_DEGREES = 180.0
STAGING_SUFFIX = ".geojson"
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "group",
    "record_type",
    "stage",
    "event",
    "status",
    "records",
    "skipped_missing",
    "skipped_unparseable",
    "offset",
    "percentage",
    "duration_ms",
    "error_code",
    "message",
)
