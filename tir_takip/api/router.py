from fastapi import APIRouter, Depends
from tir_takip.api.endpoints import documents, public, share, tirs
from tir_takip.core.admin_auth import require_admin_api_key

api_router = APIRouter()

admin = [Depends(require_admin_api_key)]

api_router.include_router(tirs.router, prefix="/tirs", tags=["tirs"], dependencies=admin)
api_router.include_router(documents.router, tags=["documents"], dependencies=admin)
api_router.include_router(share.router, tags=["share"], dependencies=admin)
api_router.include_router(public.router, prefix="/public", tags=["public"])
