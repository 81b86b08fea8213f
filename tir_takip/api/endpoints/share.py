from typing import Any, List
from fastapi import APIRouter, Body, Depends, status
from tir_takip.api.deps import get_share_service, parse_payload
from tir_takip.core.exceptions import failure_message
from tir_takip.models.share_link import ShareLinkType
from tir_takip.schemas.base import MessageResponse
from tir_takip.schemas.share_link import ShareLink, ShareLinkRequest, ShareLinkUpdate
from tir_takip.services.share_service import ShareService

router = APIRouter()


@router.post(
    "/tirs/{tir_id}/share",
    response_model=ShareLink,
    status_code=status.HTTP_201_CREATED
)
@failure_message("Paylaşım linki oluşturulurken hata oluştu")
async def create_tir_share_link(
    tir_id: str,
    payload: Any = Body(None),
    share_service: ShareService = Depends(get_share_service)
):
    """Issue a read-only link to one TIR, optionally expiring at ``expiryDate``."""
    data = parse_payload(ShareLinkRequest, payload, "Geçersiz paylaşım bilgileri")
    return await share_service.create_share_link(
        ShareLinkType.TIR,
        tir_id=tir_id,
        expiry_date=data.expiry_date
    )


@router.post("/share/list", response_model=ShareLink, status_code=status.HTTP_201_CREATED)
@failure_message("Liste paylaşım linki oluşturulurken hata oluştu")
async def create_list_share_link(
    payload: Any = Body(None),
    share_service: ShareService = Depends(get_share_service)
):
    """Issue a read-only link to the reduced TIR list."""
    data = parse_payload(ShareLinkRequest, payload, "Geçersiz paylaşım bilgileri")
    return await share_service.create_share_link(ShareLinkType.LIST, expiry_date=data.expiry_date)


@router.get("/share/{link_type}", response_model=List[ShareLink])
@failure_message("Paylaşım linkleri alınırken hata oluştu")
async def list_share_links(
    link_type: ShareLinkType,
    share_service: ShareService = Depends(get_share_service)
):
    return await share_service.get_share_links(link_type)


@router.patch("/share/{share_link_id}", response_model=ShareLink)
@failure_message("Paylaşım linki güncellenirken hata oluştu")
async def update_share_link(
    share_link_id: str,
    payload: Any = Body(None),
    share_service: ShareService = Depends(get_share_service)
):
    """
    Activate, deactivate or re-date a share link.

    Only ``active`` and ``expiryDate`` are read from the body; ``expiryDate:
    null`` removes the expiry.
    """
    data = parse_payload(ShareLinkUpdate, payload, "Geçersiz paylaşım bilgileri")
    return await share_service.update_share_link(share_link_id, data)


@router.delete("/share/{share_link_id}", response_model=MessageResponse)
@failure_message("Paylaşım linki silinirken hata oluştu")
async def delete_share_link(
    share_link_id: str,
    share_service: ShareService = Depends(get_share_service)
):
    await share_service.delete_share_link(share_link_id)
    return MessageResponse(message="Paylaşım linki başarıyla silindi")
