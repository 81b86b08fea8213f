from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from tir_takip.api.deps import get_document_service, get_tir_service
from tir_takip.core.exceptions import DocumentNotFoundException, failure_message
from tir_takip.schemas.base import MessageResponse
from tir_takip.schemas.document import Document
from tir_takip.services.document_service import DocumentService
from tir_takip.services.tir_service import TirService

router = APIRouter()


@router.post(
    "/tirs/{tir_id}/documents",
    response_model=Document,
    status_code=status.HTTP_201_CREATED
)
@failure_message("Belge yüklenirken hata oluştu")
async def upload_document(
    tir_id: str,
    file: Optional[UploadFile] = File(None),
    file_type: Optional[str] = Form(None, alias="fileType"),
    document_service: DocumentService = Depends(get_document_service)
):
    """
    Upload a scanned document for a TIR.

    Multipart fields: ``file`` (PDF, JPG, JPEG or PNG, at most 10 MB) and an
    optional ``fileType``; a missing or unknown category is stored as Other.
    """
    return await document_service.upload_document(tir_id, file, file_type)


@router.delete("/documents/{document_id}", response_model=MessageResponse)
@failure_message("Belge silinirken hata oluştu")
async def delete_document(
    document_id: str,
    tir_service: TirService = Depends(get_tir_service)
):
    if not await tir_service.delete_document(document_id):
        raise DocumentNotFoundException()
    return MessageResponse(message="Belge başarıyla silindi")
