"""Shared test fixtures and utilities."""

import os

# Keep a developer's .env out of test runs.
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app
from repository.local_object_store import LocalObjectStore

DATA_NAME = "ab" + "0" * 62
DATA_NAME_2 = "ab" + "1" * 62
DATA_NAME_3 = "cd" + "0" * 62


@pytest.fixture
def store_root(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def make_client(store_root):
    """Factory fixture: a TestClient over a local store, with settings overrides."""
    clients = []

    def _make(store=None, raise_server_exceptions=True, **overrides):
        overrides.setdefault("READ_CHUNK_BYTES", 7)
        settings = Settings(STORAGE_PATH=str(store_root), **overrides)
        if store is None:
            store = LocalObjectStore(store_root, chunk_size=settings.READ_CHUNK_BYTES)
        client = TestClient(
            create_app(settings, store=store),
            raise_server_exceptions=raise_server_exceptions,
        )
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def append_only_client(make_client):
    return make_client(APPEND_ONLY=True)


@pytest.fixture
def write_object(store_root):
    """Factory fixture to place bytes directly in the store, bypassing HTTP."""

    def _write(key: str, content: bytes = b"test content"):
        path = store_root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write
