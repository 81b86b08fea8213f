"""
Metadata store interface.

Every store keeps three entity collections (TIRs, documents, share links)
and must behave identically from the services' point of view. "Not found"
is reported as ``None``/``False``; backend failures raise StoreError.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from tir_takip.core.exceptions import StoreError, DuplicateTokenError
from tir_takip.models.document import FileType
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.schemas.share_link import ShareLink, ShareLinkCreate
from tir_takip.schemas.tir import Tir, TirCreate

__all__ = ["BaseStore", "StoreError", "DuplicateTokenError", "group_by_type"]


def group_by_type(documents: List[Document]) -> Dict[FileType, List[Document]]:
    """Group documents by category. Every category is present, possibly empty."""
    grouped: Dict[FileType, List[Document]] = {file_type: [] for file_type in FileType}
    for document in documents:
        grouped[document.file_type].append(document)
    return grouped


class BaseStore(ABC):
    """Async storage interface for TIRs, documents and share links."""

    name: str = "base"

    # TIR operations
    @abstractmethod
    async def get_tir(self, tir_id: str) -> Optional[Tir]:
        ...

    @abstractmethod
    async def get_all_tirs(self) -> List[Tir]:
        """All TIRs, most recently updated first."""

    @abstractmethod
    async def create_tir(self, data: TirCreate) -> Tir:
        """Assign an id, set last_updated and persist."""

    @abstractmethod
    async def update_tir(self, tir_id: str, changes: Dict[str, Any]) -> Optional[Tir]:
        """Merge ``changes`` and bump last_updated. An empty dict only bumps."""

    @abstractmethod
    async def delete_tir(self, tir_id: str) -> bool:
        """Delete the TIR with its documents and tir-type share links."""

    # Document operations
    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def get_documents_by_tir(self, tir_id: str) -> List[Document]:
        """Documents of a TIR, newest upload first."""

    async def get_documents_by_type(self, tir_id: str) -> Dict[FileType, List[Document]]:
        return group_by_type(await self.get_documents_by_tir(tir_id))

    @abstractmethod
    async def count_documents(self, tir_id: str) -> int:
        ...

    @abstractmethod
    async def create_document(self, data: DocumentCreate) -> Document:
        """Assign an id and upload_date and persist."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        ...

    @abstractmethod
    async def delete_documents_by_tir(self, tir_id: str) -> int:
        """Delete every document of a TIR; returns how many were removed."""

    # Share link operations
    @abstractmethod
    async def get_share_link(self, token: str) -> Optional[ShareLink]:
        ...

    @abstractmethod
    async def get_share_link_by_id(self, share_link_id: str) -> Optional[ShareLink]:
        ...

    @abstractmethod
    async def get_share_links_by_type(self, link_type: ShareLinkType) -> List[ShareLink]:
        """Share links of one type, newest first."""

    @abstractmethod
    async def create_share_link(self, data: ShareLinkCreate) -> ShareLink:
        """
        Assign id, created_at and access_count=0 and persist.

        Raises:
            DuplicateTokenError if the token is already taken
        """

    @abstractmethod
    async def update_share_link(self, share_link_id: str, changes: Dict[str, Any]) -> Optional[ShareLink]:
        ...

    @abstractmethod
    async def delete_share_link(self, share_link_id: str) -> bool:
        ...

    @abstractmethod
    async def record_access(self, token: str) -> None:
        """Increment access_count and set last_accessed; no-op for unknown tokens."""

    async def close(self) -> None:
        """Release backend resources."""
