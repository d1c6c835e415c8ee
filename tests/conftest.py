"""Shared pytest fixtures for all tests."""

import base64
import json

import pytest
from fastapi.testclient import TestClient

from common.constants import ADMIN_PASSWORD_CONFIG_KEY, SHARDS_CONFIG_KEY
from gateway.database import init_database
from gateway.repositories.config_repository import ConfigRepository
from gateway.schemas.shards import ShardDescriptor

ADMIN_PASSWORD = "test-pass"


def basic_auth(username: str = "admin", password: str = ADMIN_PASSWORD) -> dict:
    """
    Build an Authorization header for the shared DAV account.
    """
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create a temporary metadata database for each test.
    """
    db_path = tmp_path / "test.db"
    monkeypatch.setattr("gateway.database.DATABASE_PATH", str(db_path))
    monkeypatch.setattr("gateway.config.DATABASE_PATH", str(db_path))
    init_database()
    yield db_path


@pytest.fixture
def object_root(monkeypatch, tmp_path):
    """
    Point local shards at a temporary directory.
    """
    root = tmp_path / "objects"
    monkeypatch.setattr("gateway.local_object_store.OBJECT_STORE_ROOT", str(root))
    return root


@pytest.fixture
def assets_dir(monkeypatch, tmp_path):
    """
    Create a temporary static assets directory with an index and admin page.
    """
    root = tmp_path / "public"
    (root / "admin").mkdir(parents=True)
    (root / "index.html").write_text("<html>home</html>")
    (root / "admin" / "index.html").write_text("<html>admin</html>")
    monkeypatch.setattr("gateway.asset_server.ASSETS_DIR", str(root))
    return root


@pytest.fixture
def configure(test_db):
    """
    Write a shard list and admin password into the config store.
    """
    def _configure(shards, admin_password=ADMIN_PASSWORD):
        ConfigRepository.put(SHARDS_CONFIG_KEY, json.dumps(shards))
        if admin_password is not None:
            ConfigRepository.put(ADMIN_PASSWORD_CONFIG_KEY, admin_password)
    return _configure


@pytest.fixture
def local_shard():
    return ShardDescriptor(id="A", type="local", bucket_name="bucket-a")


@pytest.fixture
def remote_shard():
    return ShardDescriptor(
        id="R",
        type="remote",
        bucket_name="files",
        endpoint="https://storage.example.com",
        access_key_id="AKIDEXAMPLE",
        secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        region="auto",
    )


@pytest.fixture
def client(test_db, object_root, assets_dir):
    """Create FastAPI test client."""
    from gateway.main import app
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Authorization header with valid DAV credentials."""
    return basic_auth()


@pytest.fixture
def make_auth():
    """Factory for Authorization headers with arbitrary credentials."""
    return basic_auth


@pytest.fixture
def admin_headers():
    """Admin API secret header matching the configured password."""
    return {"X-Admin-Pass": ADMIN_PASSWORD}
