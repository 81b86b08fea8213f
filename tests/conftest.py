import os
import tempfile

# Settings are read at import time: configure the environment first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["DATABASE_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_API_KEY"] = ""
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="tir_takip_logs_")

import pytest
from typing import AsyncGenerator, Dict, Generator, List
from tir_takip.external.blob_store import BlobStore, BlobStoreError, BlobUploadResult
from tir_takip.storage.bootstrap import connect_sql_store
from tir_takip.storage.memory import MemoryStore


class FakeBlobStore(BlobStore):
    """In-memory blob store that records every call."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.deletes: List[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self.return_empty_url = False

    async def upload(self, content: bytes, *, folder: str, public_id: str) -> BlobUploadResult:
        if self.fail_upload:
            raise BlobStoreError("upload refused")
        full_id = f"{folder}/{public_id}"
        self.blobs[full_id] = content
        self.uploads.append(full_id)
        url = "" if self.return_empty_url else f"https://res.cloudinary.test/{full_id}"
        return BlobUploadResult(url=url, public_id=full_id)

    async def delete(self, public_id: str) -> None:
        self.deletes.append(public_id)
        if self.fail_delete:
            raise BlobStoreError("delete refused")
        self.blobs.pop(public_id, None)


@pytest.fixture
def fake_blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
async def sql_store(tmp_path) -> AsyncGenerator:
    """SQL store on a throwaway SQLite file."""
    store = await connect_sql_store(f"sqlite+aiosqlite:///{tmp_path / 'tir.db'}", timeout=10)
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sql"])
async def store(request, tmp_path) -> AsyncGenerator:
    """Run a test once against each store implementation."""
    if request.param == "memory":
        yield MemoryStore()
        return

    sql = await connect_sql_store(f"sqlite+aiosqlite:///{tmp_path / 'tir.db'}", timeout=10)
    yield sql
    await sql.close()


@pytest.fixture(scope="function")
def client(fake_blob_store) -> Generator:
    """Sync test client on a fresh in-memory store with the fake blob store."""
    from fastapi.testclient import TestClient
    from tir_takip.api.deps import get_blob_store
    from tir_takip.main import app

    app.dependency_overrides[get_blob_store] = lambda: fake_blob_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
