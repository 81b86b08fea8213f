"""
In-process metadata store.

Used when no database is configured or reachable. Every method runs without
awaiting anything, so each operation is atomic on the event loop.
"""
import uuid
from typing import Any, Dict, List, Optional
from tir_takip.core.time_utils import utc_now
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.schemas.share_link import ShareLink, ShareLinkCreate
from tir_takip.schemas.tir import Tir, TirCreate
from tir_takip.storage.base import BaseStore, DuplicateTokenError


def _new_id() -> str:
    return uuid.uuid4().hex


class MemoryStore(BaseStore):
    """Three id-keyed dicts; cascades are done by hand."""

    name = "memory"

    def __init__(self):
        self._tirs: Dict[str, Tir] = {}
        self._documents: Dict[str, Document] = {}
        self._share_links: Dict[str, ShareLink] = {}

    # TIR operations
    async def get_tir(self, tir_id: str) -> Optional[Tir]:
        tir = self._tirs.get(tir_id)
        return tir.model_copy() if tir else None

    async def get_all_tirs(self) -> List[Tir]:
        tirs = sorted(self._tirs.values(), key=lambda t: t.last_updated, reverse=True)
        return [tir.model_copy() for tir in tirs]

    async def create_tir(self, data: TirCreate) -> Tir:
        tir = Tir(id=_new_id(), last_updated=utc_now(), **data.model_dump())
        self._tirs[tir.id] = tir
        return tir.model_copy()

    async def update_tir(self, tir_id: str, changes: Dict[str, Any]) -> Optional[Tir]:
        existing = self._tirs.get(tir_id)
        if existing is None:
            return None

        updated = existing.model_copy(update={**changes, "last_updated": utc_now()})
        self._tirs[tir_id] = updated
        return updated.model_copy()

    async def delete_tir(self, tir_id: str) -> bool:
        if self._tirs.pop(tir_id, None) is None:
            return False

        await self.delete_documents_by_tir(tir_id)
        for link_id, link in list(self._share_links.items()):
            if link.type == ShareLinkType.TIR and link.tir_id == tir_id:
                del self._share_links[link_id]
        return True

    # Document operations
    async def get_document(self, document_id: str) -> Optional[Document]:
        document = self._documents.get(document_id)
        return document.model_copy() if document else None

    async def get_documents_by_tir(self, tir_id: str) -> List[Document]:
        documents = [doc for doc in self._documents.values() if doc.tir_id == tir_id]
        documents.sort(key=lambda d: d.upload_date, reverse=True)
        return [doc.model_copy() for doc in documents]

    async def count_documents(self, tir_id: str) -> int:
        return sum(1 for doc in self._documents.values() if doc.tir_id == tir_id)

    async def create_document(self, data: DocumentCreate) -> Document:
        document = Document(id=_new_id(), upload_date=utc_now(), **data.model_dump())
        self._documents[document.id] = document
        return document.model_copy()

    async def delete_document(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    async def delete_documents_by_tir(self, tir_id: str) -> int:
        doomed = [doc_id for doc_id, doc in self._documents.items() if doc.tir_id == tir_id]
        for doc_id in doomed:
            del self._documents[doc_id]
        return len(doomed)

    # Share link operations
    async def get_share_link(self, token: str) -> Optional[ShareLink]:
        link = self._find_by_token(token)
        return link.model_copy() if link else None

    async def get_share_link_by_id(self, share_link_id: str) -> Optional[ShareLink]:
        link = self._share_links.get(share_link_id)
        return link.model_copy() if link else None

    async def get_share_links_by_type(self, link_type: ShareLinkType) -> List[ShareLink]:
        links = [link for link in self._share_links.values() if link.type == link_type]
        links.sort(key=lambda link: link.created_at, reverse=True)
        return [link.model_copy() for link in links]

    async def create_share_link(self, data: ShareLinkCreate) -> ShareLink:
        if self._find_by_token(data.token) is not None:
            raise DuplicateTokenError()

        link = ShareLink(
            id=_new_id(),
            created_at=utc_now(),
            access_count=0,
            **data.model_dump(),
        )
        self._share_links[link.id] = link
        return link.model_copy()

    async def update_share_link(self, share_link_id: str, changes: Dict[str, Any]) -> Optional[ShareLink]:
        existing = self._share_links.get(share_link_id)
        if existing is None:
            return None

        updated = existing.model_copy(update=changes)
        self._share_links[share_link_id] = updated
        return updated.model_copy()

    async def delete_share_link(self, share_link_id: str) -> bool:
        return self._share_links.pop(share_link_id, None) is not None

    async def record_access(self, token: str) -> None:
        link = self._find_by_token(token)
        if link is None:
            return

        self._share_links[link.id] = link.model_copy(
            update={"access_count": link.access_count + 1, "last_accessed": utc_now()}
        )

    def _find_by_token(self, token: str) -> Optional[ShareLink]:
        for link in self._share_links.values():
            if link.token == token:
                return link
        return None
