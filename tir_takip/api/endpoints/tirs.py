from typing import Any, List
from fastapi import APIRouter, Body, Depends, status
from tir_takip.api.deps import get_tir_service, parse_payload
from tir_takip.core.exceptions import TirNotFoundException, failure_message
from tir_takip.schemas.base import MessageResponse
from tir_takip.schemas.tir import Tir, TirCreate, TirDetailResponse, TirListItem, TirUpdate
from tir_takip.services.tir_service import TirService

router = APIRouter()


@router.get("", response_model=List[TirListItem])
@failure_message("TIR listesi alınırken hata oluştu")
async def list_tirs(tir_service: TirService = Depends(get_tir_service)):
    """List all TIRs, most recently updated first, each with its document count."""
    return await tir_service.list_tirs_with_counts()


@router.get("/{tir_id}", response_model=TirDetailResponse)
@failure_message("TIR bilgileri alınırken hata oluştu")
async def get_tir(tir_id: str, tir_service: TirService = Depends(get_tir_service)):
    """
    Get a TIR with its documents.

    ``documentsByType`` always carries all six categories, empty ones included.
    """
    return await tir_service.get_tir_detail(tir_id)


@router.post("", response_model=Tir, status_code=status.HTTP_201_CREATED)
@failure_message("TIR oluşturulurken hata oluştu")
async def create_tir(
    payload: Any = Body(None),
    tir_service: TirService = Depends(get_tir_service)
):
    data = parse_payload(TirCreate, payload, "Geçersiz TIR bilgileri")
    return await tir_service.create_tir(data)


@router.patch("/{tir_id}", response_model=Tir)
@failure_message("TIR güncellenirken hata oluştu")
async def update_tir(
    tir_id: str,
    payload: Any = Body(None),
    tir_service: TirService = Depends(get_tir_service)
):
    """Apply the fields present in the body; absent fields are left untouched."""
    data = parse_payload(TirUpdate, payload, "Geçersiz TIR bilgileri")
    tir = await tir_service.update_tir(tir_id, data)
    if tir is None:
        raise TirNotFoundException()
    return tir


@router.delete("/{tir_id}", response_model=MessageResponse)
@failure_message("TIR silinirken hata oluştu")
async def delete_tir(tir_id: str, tir_service: TirService = Depends(get_tir_service)):
    """Delete a TIR together with its documents, their blobs and its share links."""
    if not await tir_service.delete_tir(tir_id):
        raise TirNotFoundException()
    return MessageResponse(message="TIR başarıyla silindi")
