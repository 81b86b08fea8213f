import logging
import secrets
from datetime import datetime
from typing import List, Optional, Tuple
from tir_takip.core.exceptions import (
    DuplicateTokenError,
    ShareLinkExpiredException,
    ShareLinkInvalidException,
    ShareLinkNotFoundException,
    TirNotFoundException,
)
from tir_takip.core.logging_utils import sanitize_log_message
from tir_takip.core.time_utils import utc_now
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.share_link import ShareLink, ShareLinkCreate, ShareLinkUpdate
from tir_takip.schemas.tir import PublicTirSummary, TirDetailResponse
from tir_takip.services.tir_service import load_tir_detail
from tir_takip.storage.base import BaseStore

logger = logging.getLogger(__name__)

TOKEN_ATTEMPTS = 3


class ShareService:
    """Service for share link issuing, management and public token resolution."""

    def __init__(self, store: BaseStore):
        self.store = store

    @staticmethod
    def _generate_token() -> str:
        """
        Generate a share token.

        24 random bytes encode to exactly 32 URL-safe characters (192 bits).
        """
        return secrets.token_urlsafe(24)

    async def create_share_link(
        self,
        link_type: ShareLinkType,
        tir_id: Optional[str] = None,
        expiry_date: Optional[datetime] = None
    ) -> ShareLink:
        """
        Issue a new active share link.

        Raises:
            TirNotFoundException if a tir link targets a missing TIR
        """
        if link_type == ShareLinkType.TIR:
            if not tir_id or await self.store.get_tir(tir_id) is None:
                raise TirNotFoundException()

        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            data = ShareLinkCreate(
                type=link_type,
                tir_id=tir_id if link_type == ShareLinkType.TIR else None,
                token=self._generate_token(),
                active=True,
                expiry_date=expiry_date,
            )
            try:
                link = await self.store.create_share_link(data)
            except DuplicateTokenError:
                logger.warning(f"Share token collision, retrying (attempt {attempt}/{TOKEN_ATTEMPTS})")
                if attempt == TOKEN_ATTEMPTS:
                    raise
                continue

            logger.info(
                sanitize_log_message(
                    "Share link created",
                    share_link_id=link.id,
                    type=link.type.value,
                    tir_id=link.tir_id,
                    expiry_date=link.expiry_date
                )
            )
            return link

    async def get_share_links(self, link_type: ShareLinkType) -> List[ShareLink]:
        return await self.store.get_share_links_by_type(link_type)

    async def update_share_link(self, share_link_id: str, data: ShareLinkUpdate) -> ShareLink:
        """
        Toggle ``active`` and/or change ``expiry_date``.

        Raises:
            ShareLinkNotFoundException if the id is unknown
        """
        link = await self.store.update_share_link(share_link_id, data.to_changes())
        if link is None:
            raise ShareLinkNotFoundException()
        return link

    async def delete_share_link(self, share_link_id: str) -> None:
        if not await self.store.delete_share_link(share_link_id):
            raise ShareLinkNotFoundException()
        logger.info(sanitize_log_message("Share link deleted", share_link_id=share_link_id))

    async def validate_token(self, token: str, expected_type: ShareLinkType) -> ShareLink:
        """
        Check a public token without touching its counters.

        Unknown, inactive and wrong-type tokens are all reported the same way.

        Raises:
            ShareLinkInvalidException if the token is unknown, inactive or of another type
            ShareLinkExpiredException if the expiry date has passed
        """
        link = await self.store.get_share_link(token)

        if link is None or not link.active or link.type != expected_type:
            raise ShareLinkInvalidException()

        if link.is_expired(utc_now()):
            raise ShareLinkExpiredException()

        return link

    async def resolve_public_tir(self, token: str) -> Tuple[ShareLink, TirDetailResponse]:
        """
        Resolve a tir token to the TIR dossier and count the access.

        The access is recorded only once the payload has been built.

        Raises:
            ShareLinkInvalidException, ShareLinkExpiredException
            TirNotFoundException if the link has no TIR or the TIR is gone
        """
        link = await self.validate_token(token, ShareLinkType.TIR)

        if not link.tir_id:
            raise TirNotFoundException(detail="TIR ID bulunamadı")

        tir = await self.store.get_tir(link.tir_id)
        if tir is None:
            raise TirNotFoundException()

        payload = await load_tir_detail(self.store, tir)

        await self.store.record_access(token)
        return link, payload

    async def resolve_public_list(self, token: str) -> Tuple[ShareLink, List[PublicTirSummary]]:
        """
        Resolve a list token to the reduced TIR list and count the access.

        Raises:
            ShareLinkInvalidException, ShareLinkExpiredException
        """
        link = await self.validate_token(token, ShareLinkType.LIST)

        tirs = await self.store.get_all_tirs()
        payload = [
            PublicTirSummary(
                id=tir.id,
                phone=tir.phone,
                plate=tir.plate,
                location=tir.location,
                last_updated=tir.last_updated,
            )
            for tir in tirs
        ]

        await self.store.record_access(token)
        return link, payload
