"""Configuration settings for the WebDAV gateway."""

import os


DATABASE_PATH = os.environ.get("GATEWAY_DATABASE_PATH", "/app/data/metadata.db")

GATEWAY_HOST = os.environ.get("GATEWAY_HOST", "0.0.0.0")

GATEWAY_PORT = int(os.environ.get("GATEWAY_PORT", "8000"))

OBJECT_STORE_ROOT = os.environ.get("OBJECT_STORE_ROOT", "/app/data/objects")

ASSETS_DIR = os.environ.get("ASSETS_DIR", "/app/public")

DAV_USERNAME = os.environ.get("DAV_USERNAME", "admin")

DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")

AUTH_REALM = os.environ.get("AUTH_REALM", "Sharded WebDAV")

REMOTE_TIMEOUT_SECONDS = float(os.environ.get("REMOTE_TIMEOUT_SECONDS", "30"))

# Seed values copied into the config store on startup when it has none.
BOOTSTRAP_SHARDS = os.environ.get("GATEWAY_SHARDS")

BOOTSTRAP_ADMIN_PASSWORD = os.environ.get("GATEWAY_ADMIN_PASSWORD")
