"""
Tests for metadata store selection at startup.
"""
import pytest
from tir_takip.core.exceptions import StoreError
from tir_takip.storage import bootstrap
from tir_takip.storage.bootstrap import bootstrap_store, close_store, get_active_store
from tir_takip.storage.memory import MemoryStore
from tir_takip.storage.sql import SQLStore


@pytest.fixture(autouse=True)
async def reset_active_store():
    yield
    await close_store()


class TestBootstrap:
    """Tests for bootstrap_store."""

    async def test_no_url_selects_memory(self):
        store = await bootstrap_store(None)

        assert isinstance(store, MemoryStore)
        assert get_active_store() is store

    async def test_empty_url_selects_memory(self):
        assert isinstance(await bootstrap_store(""), MemoryStore)

    async def test_sqlite_url_selects_sql(self, tmp_path):
        store = await bootstrap_store(f"sqlite+aiosqlite:///{tmp_path / 'tir.db'}")

        assert isinstance(store, SQLStore)
        assert get_active_store().name == "sql"

    async def test_unreachable_database_falls_back(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'tir.db'}"

        store = await bootstrap_store(url, timeout=5)

        assert isinstance(store, MemoryStore)

    async def test_unknown_driver_falls_back(self):
        store = await bootstrap_store("nosuchdb+nodriver://localhost/tir")

        assert isinstance(store, MemoryStore)

    async def test_store_unavailable_before_bootstrap(self):
        await close_store()

        with pytest.raises(StoreError):
            get_active_store()

    async def test_close_resets(self):
        await bootstrap_store(None)
        await close_store()

        assert bootstrap._active_store is None
