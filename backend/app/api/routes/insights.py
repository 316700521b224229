"""
Insights endpoint.

Read-only analysis of the caller's processed content. Failures still
answer with the structured body (generic message, empty lists) and a
500 status.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_insights_service
from app.core.auth import get_current_active_user
from app.db.deps import get_db
from app.models.user import User
from app.schemas.insights import InsightsRequest, InsightsResponse
from app.services.insights_service import UNAVAILABLE_MESSAGE, InsightsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.post(
    "",
    response_model=InsightsResponse,
    response_model_exclude_none=True,
    summary="Generate insights over saved content"
)
async def generate_insights(
    request: InsightsRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    service: InsightsService = Depends(get_insights_service)
):
    """
    Analyze the user's processed content.

    With ``query`` the model's answer is returned as ``insights``;
    without it, insights come with patterns, recommendations and topics.

    Raises:
        HTTPException 403: ``userId`` is not the authenticated user
    """
    if request.user_id is not None and request.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot generate insights for another user"
        )

    try:
        report = await service.generate(
            db,
            current_user.id,
            content_ids=request.content_ids or None,
            query=request.query,
        )
    except Exception as e:
        logger.error(f"Error generating insights for user {current_user.id}: {e}", exc_info=True)
        body = InsightsResponse(insights=UNAVAILABLE_MESSAGE, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(),
        )

    return InsightsResponse(**report.to_dict())
