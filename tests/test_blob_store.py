"""
Tests for the Cloudinary blob store adapter and its circuit breaker.
"""
import pytest
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from tir_takip.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException, CircuitState
from tir_takip.external.blob_store import BlobStoreError, CloudinaryBlobStore


@pytest.fixture
def breaker() -> CircuitBreaker:
    return CircuitBreaker(name="test", failure_threshold=2, recovery_timeout=60, half_open_max_calls=1)


@pytest.fixture
def blob_store(breaker) -> CloudinaryBlobStore:
    return CloudinaryBlobStore("demo", "key", "secret", timeout=5, circuit_breaker=breaker)


class TestCloudinaryBlobStore:
    """Tests for upload/delete against a patched SDK."""

    async def test_upload(self, blob_store, monkeypatch):
        calls = {}

        def fake_upload(file, **options):
            calls.update(options, content=file.read())
            return {"secure_url": "https://res.cloudinary.com/demo/x.pdf", "public_id": "gmi-tir-documents/t_x"}

        monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

        result = await blob_store.upload(b"pdf", folder="gmi-tir-documents", public_id="t_x")

        assert result.url == "https://res.cloudinary.com/demo/x.pdf"
        assert result.public_id == "gmi-tir-documents/t_x"
        assert calls["folder"] == "gmi-tir-documents"
        assert calls["resource_type"] == "auto"
        assert calls["content"] == b"pdf"

    async def test_sdk_error_is_wrapped(self, blob_store, monkeypatch):
        def failing(*args, **kwargs):
            raise CloudinaryError("bad credentials")

        monkeypatch.setattr(cloudinary.uploader, "upload", failing)

        with pytest.raises(BlobStoreError):
            await blob_store.upload(b"pdf", folder="f", public_id="p")

    async def test_delete_ok_and_not_found(self, blob_store, monkeypatch):
        results = iter([{"result": "ok"}, {"result": "not found"}])
        monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id: next(results))

        await blob_store.delete("a")
        await blob_store.delete("b")

    async def test_delete_unexpected_result(self, blob_store, monkeypatch):
        monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id: {"result": "error"})

        with pytest.raises(BlobStoreError):
            await blob_store.delete("a")

    async def test_missing_credentials(self, breaker):
        store = CloudinaryBlobStore("", "", "", circuit_breaker=breaker)

        with pytest.raises(BlobStoreError):
            await store.upload(b"pdf", folder="f", public_id="p")
        assert breaker.failure_count == 0


class TestCircuitBreaker:
    """Tests for the breaker wrapped around blob calls."""

    async def test_opens_after_threshold(self, blob_store, breaker, monkeypatch):
        def failing(*args, **kwargs):
            raise CloudinaryError("down")

        monkeypatch.setattr(cloudinary.uploader, "destroy", failing)

        for _ in range(2):
            with pytest.raises(BlobStoreError):
                await blob_store.delete("a")

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitBreakerOpenException):
            await blob_store.delete("a")

    async def test_half_open_success_closes(self, breaker):
        async def fail():
            raise RuntimeError("down")

        async def succeed():
            return "ok"

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(fail)
        breaker.recovery_timeout = 0

        assert await breaker.call(succeed) == "ok"
        assert breaker.state == CircuitState.CLOSED

    async def test_reset(self, breaker):
        async def fail():
            raise RuntimeError("down")

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(fail)

        breaker.reset()

        assert breaker.get_status()["state"] == "closed"
