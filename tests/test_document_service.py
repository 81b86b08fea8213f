"""
Tests for the upload pipeline: filename handling, file checks and blob/metadata consistency.
"""
import io
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers
from tir_takip.core.circuit_breaker import CircuitBreakerOpenException
from tir_takip.core.exceptions import (
    BlobStorageException,
    DocumentUploadException,
    StoreError,
    TirNotFoundException,
    ValidationFailedException,
)
from tir_takip.models.document import FileType
from tir_takip.schemas.tir import TirCreate
from tir_takip.services.document_service import DocumentService, coerce_file_type
from tir_takip.services.tir_service import TirService


def make_upload(filename: str, content_type: str, size: int = 1024) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(b"%" * size),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def document_service(memory_store, fake_blob_store) -> DocumentService:
    return DocumentService(TirService(memory_store, fake_blob_store), fake_blob_store)


@pytest.fixture
async def tir(memory_store):
    return await memory_store.create_tir(TirCreate(phone="555"))


class TestFilenameSanitization:
    """Tests for the stored display name."""

    def test_normal_filename(self):
        assert DocumentService._sanitize_filename("cmr.pdf") == "cmr.pdf"

    def test_unix_path_is_stripped(self):
        assert DocumentService._sanitize_filename("../../etc/cmr.pdf") == "cmr.pdf"

    def test_windows_path_is_stripped(self):
        assert DocumentService._sanitize_filename("C:\\Users\\sofor\\t1.png") == "t1.png"

    def test_control_characters_removed(self):
        assert DocumentService._sanitize_filename("fa\x00tu\nra.pdf") == "fatura.pdf"

    def test_length_is_capped(self):
        assert len(DocumentService._sanitize_filename("a" * 300 + ".pdf")) == 255

    def test_empty_name(self):
        assert DocumentService._sanitize_filename("") == "unnamed"


class TestFileValidation:
    """Extension and MIME type must both be allowed."""

    @pytest.mark.parametrize("filename,content_type", [
        ("cmr.pdf", "application/pdf"),
        ("T1.PDF", "application/pdf"),
        ("scan.jpg", "image/jpeg"),
        ("scan.JPEG", "image/jpeg"),
        ("photo.png", "image/png"),
    ])
    def test_allowed(self, document_service, filename, content_type):
        document_service._validate_file(filename, content_type)

    @pytest.mark.parametrize("filename,content_type", [
        ("notes.txt", "text/plain"),
        ("cmr.pdf", "text/plain"),
        ("script.exe", "application/pdf"),
        ("cmr", "application/pdf"),
        ("cmr.pdf", None),
    ])
    def test_rejected(self, document_service, filename, content_type):
        with pytest.raises(DocumentUploadException) as exc_info:
            document_service._validate_file(filename, content_type)

        assert exc_info.value.status_code == 400
        assert "PDF" in exc_info.value.detail


class TestFileTypeCoercion:
    """Unknown or missing categories become Other."""

    def test_known(self):
        assert coerce_file_type("TurkishInvoice") == FileType.TURKISH_INVOICE

    def test_missing(self):
        assert coerce_file_type(None) == FileType.OTHER

    def test_unknown(self):
        assert coerce_file_type("Passport") == FileType.OTHER


class TestUploadPipeline:
    """Tests for upload_document."""

    async def test_successful_upload(self, document_service, memory_store, fake_blob_store, tir):
        document = await document_service.upload_document(
            tir.id, make_upload("cmr.pdf", "application/pdf"), "CMR"
        )

        assert document.file_type == FileType.CMR
        assert document.cloudinary_url
        assert document.file_size == 1024
        assert document.mime_type == "application/pdf"
        assert document.cloudinary_public_id.startswith(f"gmi-tir-documents/{tir.id}_")
        assert fake_blob_store.uploads == [document.cloudinary_public_id]
        assert await memory_store.count_documents(tir.id) == 1

    async def test_public_id_suffix_is_32_chars(self, document_service, tir):
        document = await document_service.upload_document(tir.id, make_upload("a.png", "image/png"))

        suffix = document.cloudinary_public_id.split(f"{tir.id}_", 1)[1]
        assert len(suffix) == 32

    async def test_missing_file(self, document_service, tir):
        with pytest.raises(DocumentUploadException) as exc_info:
            await document_service.upload_document(tir.id, None)

        assert exc_info.value.detail == "Dosya gereklidir"

    async def test_oversized_file(self, document_service, fake_blob_store, tir):
        upload = make_upload("big.pdf", "application/pdf", size=10 * 1024 * 1024 + 1)

        with pytest.raises(DocumentUploadException) as exc_info:
            await document_service.upload_document(tir.id, upload)

        assert "10 MB" in exc_info.value.detail
        assert fake_blob_store.uploads == []

    async def test_unknown_tir_uploads_nothing(self, document_service, fake_blob_store):
        with pytest.raises(TirNotFoundException):
            await document_service.upload_document("0" * 32, make_upload("cmr.pdf", "application/pdf"))

        assert fake_blob_store.uploads == []

    async def test_blob_failure_creates_no_row(self, document_service, memory_store, fake_blob_store, tir):
        fake_blob_store.fail_upload = True

        with pytest.raises(BlobStorageException):
            await document_service.upload_document(tir.id, make_upload("cmr.pdf", "application/pdf"))

        assert await memory_store.count_documents(tir.id) == 0

    async def test_invalid_metadata_deletes_blob(self, document_service, memory_store, fake_blob_store, tir):
        fake_blob_store.return_empty_url = True

        with pytest.raises(ValidationFailedException) as exc_info:
            await document_service.upload_document(tir.id, make_upload("cmr.pdf", "application/pdf"))

        assert any(issue["path"] == ["cloudinaryUrl"] for issue in exc_info.value.errors)
        assert fake_blob_store.deletes == fake_blob_store.uploads
        assert fake_blob_store.blobs == {}
        assert await memory_store.count_documents(tir.id) == 0

    async def test_persist_failure_deletes_blob(self, document_service, memory_store, fake_blob_store, tir, monkeypatch):
        async def broken(data):
            raise RuntimeError("disk full")

        monkeypatch.setattr(memory_store, "create_document", broken)

        with pytest.raises(RuntimeError):
            await document_service.upload_document(tir.id, make_upload("cmr.pdf", "application/pdf"))

        assert len(fake_blob_store.uploads) == 1
        assert fake_blob_store.deletes == fake_blob_store.uploads
        assert fake_blob_store.blobs == {}

    async def test_failed_parent_bump_keeps_blob(self, document_service, memory_store, fake_blob_store, tir, monkeypatch):
        async def broken(tir_id, changes):
            raise StoreError("bump failed")

        monkeypatch.setattr(memory_store, "update_tir", broken)

        with pytest.raises(StoreError):
            await document_service.upload_document(tir.id, make_upload("cmr.pdf", "application/pdf"))

        documents = await memory_store.get_documents_by_tir(tir.id)
        assert len(documents) == 1
        assert fake_blob_store.deletes == []
        assert documents[0].cloudinary_public_id in fake_blob_store.blobs

    async def test_open_circuit_is_a_blob_failure(self, document_service, memory_store, fake_blob_store, tir, monkeypatch):
        async def refuse(content, *, folder, public_id):
            raise CircuitBreakerOpenException()

        monkeypatch.setattr(fake_blob_store, "upload", refuse)

        with pytest.raises(BlobStorageException) as exc_info:
            await document_service.upload_document(tir.id, make_upload("cmr.pdf", "application/pdf"))

        assert exc_info.value.status_code == 500
        assert await memory_store.count_documents(tir.id) == 0
