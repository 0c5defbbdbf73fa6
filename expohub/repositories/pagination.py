"""Range pagination over large result sets, one fixed-size page at a time."""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from expohub.core.logging import db_logger
from expohub.domain.catalog import PAGE_SIZE

Row = Dict[str, Any]
PageFetcher = Callable[[int, int], List[Row]]


def fetch_all_pages(fetch_page: PageFetcher, page_size: int = PAGE_SIZE) -> List[Row]:
    """
    Request ``[0, page_size-1], [page_size, 2*page_size-1], ...`` until a page
    comes back empty or shorter than ``page_size``.

    Pages are requested sequentially (each decision depends on the previous
    page being full). Errors propagate to the caller; there is no partial result.

    Args:
        fetch_page: callable receiving ``(offset, limit)`` and returning rows
        page_size: rows per page

    Returns:
        All rows, in page order
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    rows: List[Row] = []
    offset = 0
    pages = 0
    while True:
        batch = fetch_page(offset, page_size)
        pages += 1
        if not batch:
            break
        rows.extend(batch)
        if len(batch) < page_size:
            break
        offset += page_size

    db_logger.debug("Paginated fetch finished", pages=pages, rows=len(rows))
    return rows
