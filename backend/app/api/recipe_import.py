import logging
from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.share_import import (
    ShareImportPreviewRequest,
    ShareImportPreviewResponse,
    ShareLinkValidateRequest,
    ShareLinkValidateResponse,
)
from app.services.share_errors import ShareImportError
from app.services.share_import_service import ShareImportService, share_import_service
from app.utils.share_link import validate_share_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes/import/chatgpt-share", tags=["Recipe Import"])


def get_share_import_service() -> ShareImportService:
    return share_import_service


@router.post("/validate", response_model=ShareLinkValidateResponse)
def validate_share_link(request: ShareLinkValidateRequest):
    """
    Checks the URL shape only. No network access.
    """
    return validate_share_url(request.url)


@router.post("/preview", response_model=ShareImportPreviewResponse)
async def preview_share_import(
    request: ShareImportPreviewRequest,
    service: ShareImportService = Depends(get_share_import_service)
):
    """
    Fetch a ChatGPT share link and list the recipes found in it.
    Nothing is saved; the client picks candidates by importIndex.
    """
    try:
        return await service.preview(request.url)
    except ShareImportError as e:
        logger.warning(f"[Recipe Import] Preview failed ({type(e).__name__}): {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.exception(f"[Recipe Import] Unexpected preview error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not import share link."
        )
