from typing import List
from fastapi import APIRouter, Depends, Request
from tir_takip.api.deps import get_share_service
from tir_takip.core.exceptions import failure_message
from tir_takip.middleware.rate_limit import rate_limit_public
from tir_takip.schemas.tir import PublicTirSummary, TirDetailResponse
from tir_takip.services.share_service import ShareService

router = APIRouter()


@router.get("/tir/{token}", response_model=TirDetailResponse)
@rate_limit_public()
@failure_message("Paylaşılan TIR bilgileri alınırken hata oluştu")
async def get_shared_tir(
    token: str,
    request: Request,
    share_service: ShareService = Depends(get_share_service)
):
    """
    Resolve a TIR share token.

    Unknown, inactive, wrong-type and expired tokens all answer 404; only the
    expired case carries its own message.
    """
    _, tir = await share_service.resolve_public_tir(token)
    return tir


@router.get("/list/{token}", response_model=List[PublicTirSummary])
@rate_limit_public()
@failure_message("Paylaşılan TIR listesi alınırken hata oluştu")
async def get_shared_list(
    token: str,
    request: Request,
    share_service: ShareService = Depends(get_share_service)
):
    """Resolve a list share token to id, phone, plate, location and lastUpdated of every TIR."""
    _, tirs = await share_service.resolve_public_list(token)
    return tirs
