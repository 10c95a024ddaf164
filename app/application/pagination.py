"""Pagination contract shared by every list endpoint."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps OFFSET far inside Postgres int8; pages past the data are empty anyway
MAX_PAGE = 10_000_000


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    skip: int


def _to_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def clamp_limit(raw: Any, default: int, maximum: int) -> int:
    """Parse a size limit, falling back to `default` and clamping to [1, maximum]."""
    return min(max(1, _to_int(raw, default)), maximum)


def paginate(
    raw_page: Any,
    raw_limit: Any,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PageWindow:
    """Normalize raw page/limit input into a clamped window.

    Missing or non-integer values take the defaults; page is clamped to
    [1, MAX_PAGE] and limit to [1, max_limit].
    """
    page = min(max(1, _to_int(raw_page, 1)), MAX_PAGE)
    limit = clamp_limit(raw_limit, default_limit, max_limit)
    return PageWindow(page=page, limit=limit, skip=(page - 1) * limit)


def page_count(total: int, limit: int) -> int:
    """Number of pages; zero when there is nothing to show."""
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def paginated(
    data: Sequence[Any],
    total: int,
    window: PageWindow,
    message: str,
) -> dict[str, Any]:
    """Build the list response envelope."""
    return {
        "message": message,
        "data": list(data),
        "page": window.page,
        "limit": window.limit,
        "totalPages": page_count(total, window.limit),
        "totalCount": total,
    }
