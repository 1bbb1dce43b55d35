"""Pagination driver - collect every entry of a content type."""

from typing import Callable

from content_spine.errors import ValidationError
from content_spine.logging import get_logger
from content_spine.models import Page, RawEntry

logger = get_logger(__name__)

FetchPage = Callable[[int, int], Page]


def collect_all(fetch_page: FetchPage, page_size: int) -> list[RawEntry]:
    """
    Call ``fetch_page(skip, limit)`` until the source is exhausted.

    The ``total`` reported by the first page is authoritative for the whole
    run. Collection stops once that many entries are accumulated, or as soon
    as a page comes back empty (a source may over-report ``total``). Pages are
    fetched strictly one after the other; any fetch error propagates and
    nothing is returned.
    """
    if page_size <= 0:
        raise ValidationError("page_size must be positive", field="page_size", value=page_size)

    entries: list[RawEntry] = []
    total = 0
    skip = 0

    while True:
        page = fetch_page(skip, page_size)
        items = list(page.items or [])
        if skip == 0:
            total = page.total if page.total is not None else len(items)

        entries.extend(items)
        logger.debug("page_fetched", skip=skip, count=len(items), accumulated=len(entries), total=total)

        if len(entries) >= total or not items:
            break
        skip += page_size

    logger.info("pagination_complete", entries=len(entries), total=total, pages=skip // page_size + 1)
    return entries
