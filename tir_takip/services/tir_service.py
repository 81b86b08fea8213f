import asyncio
import logging
from typing import List, Optional
from tir_takip.core.circuit_breaker import CircuitBreakerOpenException
from tir_takip.core.exceptions import TirNotFoundException
from tir_takip.core.logging_utils import sanitize_log_message
from tir_takip.external.blob_store import BlobStore, BlobStoreError
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.schemas.tir import Tir, TirCreate, TirUpdate, TirListItem, TirDetailResponse
from tir_takip.storage.base import BaseStore, group_by_type

logger = logging.getLogger(__name__)


async def load_tir_detail(store: BaseStore, tir: Tir) -> TirDetailResponse:
    """Attach documents, their count and the per-category grouping to a TIR."""
    documents = await store.get_documents_by_tir(tir.id)
    return TirDetailResponse(
        **tir.model_dump(),
        documents=documents,
        document_count=len(documents),
        documents_by_type=group_by_type(documents),
    )


class TirService:
    """
    Service for TIRs and their documents.

    The only place that changes more than one entity per call: document
    writes bump the parent TIR, TIR deletion cascades to blobs, documents and
    share links.
    """

    def __init__(self, store: BaseStore, blob_store: BlobStore):
        self.store = store
        self.blob_store = blob_store

    async def create_tir(self, data: TirCreate) -> Tir:
        tir = await self.store.create_tir(data)
        logger.info(sanitize_log_message("TIR created", tir_id=tir.id, phone=tir.phone))
        return tir

    async def update_tir(self, tir_id: str, data: TirUpdate) -> Optional[Tir]:
        """Merge the sent fields over the stored TIR; None if unknown."""
        return await self.store.update_tir(tir_id, data.to_changes())

    async def get_tir(self, tir_id: str) -> Optional[Tir]:
        return await self.store.get_tir(tir_id)

    async def list_tirs_with_counts(self) -> List[TirListItem]:
        """All TIRs, newest first, each with its document count."""
        tirs = await self.store.get_all_tirs()
        counts = await asyncio.gather(*(self.store.count_documents(tir.id) for tir in tirs))
        return [
            TirListItem(**tir.model_dump(), document_count=count)
            for tir, count in zip(tirs, counts)
        ]

    async def get_tir_detail(self, tir_id: str) -> TirDetailResponse:
        """
        TIR with documents, count and the six-category grouping.

        Raises:
            TirNotFoundException if the TIR does not exist
        """
        tir = await self.store.get_tir(tir_id)
        if tir is None:
            raise TirNotFoundException()

        return await load_tir_detail(self.store, tir)

    async def delete_tir(self, tir_id: str) -> bool:
        """
        Delete a TIR and everything it owns.

        Blob deletes are best-effort: a failure is logged and the cascade
        continues, leaving at worst an orphan blob.

        Returns:
            True if the TIR existed
        """
        tir = await self.store.get_tir(tir_id)
        if tir is None:
            return False

        documents = await self.store.get_documents_by_tir(tir_id)
        for document in documents:
            await self._delete_blob(document)

        deleted = await self.store.delete_tir(tir_id)

        logger.info(
            sanitize_log_message(
                "TIR deleted",
                tir_id=tir_id,
                document_count=len(documents),
                existed=deleted
            )
        )
        return deleted

    async def create_document(self, data: DocumentCreate) -> Document:
        """Persist document metadata, then bump the parent TIR."""
        document = await self.add_document(data)
        await self.touch_tir(document.tir_id)
        return document

    async def add_document(self, data: DocumentCreate) -> Document:
        """Persist document metadata only; the parent TIR is left as is."""
        document = await self.store.create_document(data)

        logger.info(
            sanitize_log_message(
                "Document created",
                document_id=document.id,
                tir_id=document.tir_id,
                file_type=document.file_type.value,
                file_size=document.file_size
            )
        )
        return document

    async def touch_tir(self, tir_id: str) -> None:
        """Move the TIR's lastUpdated to now."""
        await self.store.update_tir(tir_id, {})

    async def delete_document(self, document_id: str) -> bool:
        """
        Delete a document: blob first (best-effort), then metadata, then bump the TIR.

        Returns:
            True if the document existed
        """
        document = await self.store.get_document(document_id)
        if document is None:
            return False

        await self._delete_blob(document)

        deleted = await self.store.delete_document(document_id)
        if deleted:
            await self.touch_tir(document.tir_id)

        logger.info(
            sanitize_log_message(
                "Document deleted",
                document_id=document_id,
                tir_id=document.tir_id
            )
        )
        return deleted

    async def _delete_blob(self, document: Document) -> None:
        try:
            await self.blob_store.delete(document.cloudinary_public_id)
        except (BlobStoreError, CircuitBreakerOpenException) as e:
            logger.error(
                sanitize_log_message(
                    "Blob delete failed, continuing with metadata delete",
                    document_id=document.id,
                    public_id=document.cloudinary_public_id,
                    Error=str(e)
                )
            )
