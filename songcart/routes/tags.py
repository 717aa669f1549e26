"""Tag routes"""

from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, Query

from ..core.dependencies import get_retry_config, get_tag_query
from ..core.errors import handle_error
from ..core.retry import QueryResult, RetryConfig
from ..models.tags import PopularTagsResponse
from ..services.tags import fetch_popular_tags

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("/popular", response_model=PopularTagsResponse)
async def popular_tags(
    limit: int = Query(20, ge=1, le=100),
    query: Callable[[], Awaitable[QueryResult]] = Depends(get_tag_query),
    retry_config: RetryConfig = Depends(get_retry_config),
):
    """Most used question-set tags"""
    result = await fetch_popular_tags(query, limit=limit, retry_config=retry_config)
    if not result.ok:
        raise handle_error(result.error)
    return PopularTagsResponse(tags=result.data)
