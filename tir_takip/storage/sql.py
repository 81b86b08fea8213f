"""
SQLAlchemy-backed metadata store.

One table per entity (see tir_takip.models). Each operation runs in its own
session; multi-row deletes happen inside a single transaction.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from tir_takip.core.time_utils import ensure_utc, utc_now
from tir_takip.database import close_db, create_session_factory
from tir_takip.models.document import DocumentRecord
from tir_takip.models.share_link import ShareLinkRecord, ShareLinkType
from tir_takip.models.tir import TirRecord
from tir_takip.schemas.document import Document, DocumentCreate
from tir_takip.schemas.share_link import ShareLink, ShareLinkCreate
from tir_takip.schemas.tir import Tir, TirCreate
from tir_takip.storage.base import BaseStore, DuplicateTokenError, StoreError

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_tir(record: TirRecord) -> Tir:
    tir = Tir.model_validate(record)
    tir.last_updated = ensure_utc(tir.last_updated)
    return tir


def _to_document(record: DocumentRecord) -> Document:
    document = Document.model_validate(record)
    document.upload_date = ensure_utc(document.upload_date)
    return document


def _to_share_link(record: ShareLinkRecord) -> ShareLink:
    link = ShareLink.model_validate(record)
    link.created_at = ensure_utc(link.created_at)
    link.expiry_date = ensure_utc(link.expiry_date)
    link.last_accessed = ensure_utc(link.last_accessed)
    return link


class SQLStore(BaseStore):
    """Metadata store on any async SQLAlchemy backend."""

    name = "sql"

    def __init__(self, engine: AsyncEngine, session_factory: Optional[async_sessionmaker] = None):
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Session that commits on success and maps backend errors to StoreError."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if "token" in str(e.orig).lower():
                    raise DuplicateTokenError() from e
                raise StoreError(f"Integrity error: {e.orig}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database operation failed: {type(e).__name__}: {e}")
                raise StoreError(f"Database operation failed: {type(e).__name__}") from e

    # TIR operations
    async def get_tir(self, tir_id: str) -> Optional[Tir]:
        async with self._session() as session:
            record = await session.get(TirRecord, tir_id)
            return _to_tir(record) if record else None

    async def get_all_tirs(self) -> List[Tir]:
        async with self._session() as session:
            result = await session.execute(
                select(TirRecord).order_by(TirRecord.last_updated.desc())
            )
            return [_to_tir(record) for record in result.scalars().all()]

    async def create_tir(self, data: TirCreate) -> Tir:
        record = TirRecord(id=_new_id(), last_updated=utc_now(), **data.model_dump())
        async with self._session() as session:
            session.add(record)
            await session.flush()
            return _to_tir(record)

    async def update_tir(self, tir_id: str, changes: Dict[str, Any]) -> Optional[Tir]:
        async with self._session() as session:
            record = await session.get(TirRecord, tir_id)
            if record is None:
                return None

            for key, value in changes.items():
                setattr(record, key, value)
            record.last_updated = utc_now()
            await session.flush()
            return _to_tir(record)

    async def delete_tir(self, tir_id: str) -> bool:
        async with self._session() as session:
            await session.execute(delete(DocumentRecord).where(DocumentRecord.tir_id == tir_id))
            await session.execute(
                delete(ShareLinkRecord).where(
                    ShareLinkRecord.type == ShareLinkType.TIR,
                    ShareLinkRecord.tir_id == tir_id,
                )
            )
            result = await session.execute(delete(TirRecord).where(TirRecord.id == tir_id))
            return result.rowcount > 0

    # Document operations
    async def get_document(self, document_id: str) -> Optional[Document]:
        async with self._session() as session:
            record = await session.get(DocumentRecord, document_id)
            return _to_document(record) if record else None

    async def get_documents_by_tir(self, tir_id: str) -> List[Document]:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentRecord)
                .where(DocumentRecord.tir_id == tir_id)
                .order_by(DocumentRecord.upload_date.desc())
            )
            return [_to_document(record) for record in result.scalars().all()]

    async def count_documents(self, tir_id: str) -> int:
        async with self._session() as session:
            result = await session.execute(
                select(func.count()).select_from(DocumentRecord).where(DocumentRecord.tir_id == tir_id)
            )
            return result.scalar_one()

    async def create_document(self, data: DocumentCreate) -> Document:
        record = DocumentRecord(id=_new_id(), upload_date=utc_now(), **data.model_dump())
        async with self._session() as session:
            session.add(record)
            await session.flush()
            return _to_document(record)

    async def delete_document(self, document_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(DocumentRecord).where(DocumentRecord.id == document_id)
            )
            return result.rowcount > 0

    async def delete_documents_by_tir(self, tir_id: str) -> int:
        async with self._session() as session:
            result = await session.execute(
                delete(DocumentRecord).where(DocumentRecord.tir_id == tir_id)
            )
            return result.rowcount

    # Share link operations
    async def get_share_link(self, token: str) -> Optional[ShareLink]:
        async with self._session() as session:
            result = await session.execute(
                select(ShareLinkRecord).where(ShareLinkRecord.token == token)
            )
            record = result.scalar_one_or_none()
            return _to_share_link(record) if record else None

    async def get_share_link_by_id(self, share_link_id: str) -> Optional[ShareLink]:
        async with self._session() as session:
            record = await session.get(ShareLinkRecord, share_link_id)
            return _to_share_link(record) if record else None

    async def get_share_links_by_type(self, link_type: ShareLinkType) -> List[ShareLink]:
        async with self._session() as session:
            result = await session.execute(
                select(ShareLinkRecord)
                .where(ShareLinkRecord.type == link_type)
                .order_by(ShareLinkRecord.created_at.desc())
            )
            return [_to_share_link(record) for record in result.scalars().all()]

    async def create_share_link(self, data: ShareLinkCreate) -> ShareLink:
        record = ShareLinkRecord(
            id=_new_id(),
            created_at=utc_now(),
            access_count=0,
            **data.model_dump(),
        )
        async with self._session() as session:
            session.add(record)
            await session.flush()
            return _to_share_link(record)

    async def update_share_link(self, share_link_id: str, changes: Dict[str, Any]) -> Optional[ShareLink]:
        async with self._session() as session:
            record = await session.get(ShareLinkRecord, share_link_id)
            if record is None:
                return None

            for key, value in changes.items():
                setattr(record, key, value)
            await session.flush()
            return _to_share_link(record)

    async def delete_share_link(self, share_link_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(ShareLinkRecord).where(ShareLinkRecord.id == share_link_id)
            )
            return result.rowcount > 0

    async def record_access(self, token: str) -> None:
        async with self._session() as session:
            await session.execute(
                update(ShareLinkRecord)
                .where(ShareLinkRecord.token == token)
                .values(
                    access_count=ShareLinkRecord.access_count + 1,
                    last_accessed=utc_now(),
                )
            )

    async def close(self) -> None:
        await close_db(self.engine)
