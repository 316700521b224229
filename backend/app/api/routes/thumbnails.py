"""
Thumbnail extraction endpoint.

Never fails on the target page's account: anything that goes wrong
during extraction is reported as ``success: false``.
"""

import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_thumbnail_service
from app.core.auth import get_current_active_user
from app.models.user import User
from app.schemas.thumbnail import ThumbnailRequest, ThumbnailResponse
from app.services.thumbnail_service import ThumbnailService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/thumbnails", tags=["Thumbnails"])


@router.post(
    "/extract",
    response_model=ThumbnailResponse,
    response_model_exclude_none=True,
    summary="Find a preview image for a URL"
)
async def extract_thumbnail(
    request: ThumbnailRequest,
    current_user: User = Depends(get_current_active_user),
    service: ThumbnailService = Depends(get_thumbnail_service)
):
    thumbnail_url = await service.extract_thumbnail_async(request.url, request.content_type)

    if not thumbnail_url:
        return ThumbnailResponse(success=False, error="No thumbnail found")
    return ThumbnailResponse(success=True, thumbnail_url=thumbnail_url)
