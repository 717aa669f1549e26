"""Popular tag aggregation for question sets"""

import logging
from collections import Counter
from typing import Awaitable, Callable, Iterable, Optional

from ..core.retry import QueryResult, RetryConfig, with_query_retry

logger = logging.getLogger(__name__)


def count_popular_tags(rows: Iterable[dict], limit: int = 20) -> list[dict]:
    """Count string tags across rows, most used first"""
    counts: Counter = Counter()
    for row in rows:
        tags = row.get("tags")
        if not isinstance(tags, list):
            continue
        counts.update(tag for tag in tags if isinstance(tag, str))

    # most_common keeps first-seen order for equal counts
    return [{"tag": tag, "count": count} for tag, count in counts.most_common(limit)]


async def fetch_popular_tags(
    query: Callable[[], Awaitable[QueryResult]],
    limit: int = 20,
    retry_config: Optional[RetryConfig] = None,
) -> QueryResult:
    """Run a question-set tag query and aggregate its rows"""
    result = await with_query_retry(query, retry_config)
    if not result.ok:
        logger.error(f"Error fetching tags: {result.error}")
        return result
    return QueryResult(data=count_popular_tags(result.data or [], limit))
