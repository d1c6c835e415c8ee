"""Project-wide constants (WebDAV methods, sentinels, config keys, defaults)."""

DAV_METHODS: tuple = (
    "OPTIONS",
    "HEAD",
    "GET",
    "PUT",
    "DELETE",
    "PROPFIND",
    "MKCOL",
    "MOVE",
    "LOCK",
    "UNLOCK",
)

# Methods routed to the DAV handler only so they can be refused with 405 after auth.
UNSUPPORTED_DAV_METHODS: tuple = ("POST", "PATCH", "COPY", "PROPPATCH")

DAV_COMPLIANCE_CLASSES: str = "1, 2"

DIRECTORY_BUCKET_ID: str = "NONE"

ROOT_PATH: str = "/"

ROOT_DISPLAY_NAME: str = "root"

SHARDS_CONFIG_KEY: str = "SHARDS"

ADMIN_PASSWORD_CONFIG_KEY: str = "ADMIN_PASS"

ADMIN_SECRET_HEADER: str = "X-Admin-Pass"

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

DEFAULT_LOCK_TIMEOUT: str = "Second-3600"

LOCK_TOKEN_SCHEME: str = "opaquelocktoken:"

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024  # 64 KiB per streamed body piece

REMOTE_SIGNING_SERVICE: str = "s3"

DEFAULT_REMOTE_REGION: str = "auto"
