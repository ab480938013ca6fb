from __future__ import annotations
import asyncio
import logging
from typing import Optional

from . import trace as T
from .config import DateFilterConfig
from .dates import DateMatch, date_from_url, parse_timestamp
from .extract import Document, find_document_date
from .fetch import Fetcher, FetchResult, is_pdf_url, make_fetcher
from .models import DateSource, DocumentKind, ResolutionOutcome, ResultItem
from .trace import DateTrace, NullTrace

logger = logging.getLogger(__name__)


def provided_outcome(item: ResultItem) -> Optional[ResolutionOutcome]:
    """Outcome for an item whose own ``published_date`` already parses, else None.

    Items this engine enriched on an earlier run keep their ``scraped`` provenance.
    """
    d = parse_timestamp(item.published_date)
    if d is None:
        return None
    source = DateSource.SCRAPED if item.date_source is DateSource.SCRAPED else DateSource.PROVIDED
    return ResolutionOutcome(item, d, source, strategy="published_date")


async def _parse(doc: Document, cfg: DateFilterConfig) -> Optional[DateMatch]:
    if doc.kind is DocumentKind.PDF:
        # PDF parsing is CPU bound; keep it off the event loop
        return await asyncio.to_thread(find_document_date, doc, cfg=cfg)
    return find_document_date(doc, cfg=cfg)


def _unknown(item: ResultItem) -> ResolutionOutcome:
    item.date_source = DateSource.UNKNOWN
    return ResolutionOutcome(item, None, DateSource.UNKNOWN)


async def resolve_item(
    item: ResultItem,
    *,
    timeout: float,
    fetcher: Optional[Fetcher] = None,
    cfg: Optional[DateFilterConfig] = None,
    trace: Optional[DateTrace] = None,
) -> ResolutionOutcome:
    """Best-effort publication date for one item. Never raises (cancellation aside)."""
    cfg = cfg or DateFilterConfig()
    trace = trace or NullTrace()
    try:
        pre = provided_outcome(item)
        if pre is not None:
            item.date_source = pre.source
            trace.record(T.PROVIDED, item.url, date=pre.resolved_date.isoformat())
            return pre

        fetcher = fetcher or make_fetcher(cfg)
        res: FetchResult = await fetcher(item.url, timeout)
        hit: Optional[DateMatch] = None
        if res.ok:
            hit = await _parse(res.as_document(), cfg)
        else:
            trace.record(T.FETCH_FAILED, item.url, reason=res.reason, status=res.status)
            # The PDF sub-cascade still has its URL fallback without a body
            if is_pdf_url(item.url):
                hit = date_from_url(item.url)

        if hit is None:
            trace.record(T.UNKNOWN, item.url)
            return _unknown(item)

        item.published_date = hit.isoformat()
        item.date_source = DateSource.SCRAPED
        trace.record(T.SCRAPED, item.url, date=item.published_date, strategy=hit.strategy)
        return ResolutionOutcome(item, hit.value, DateSource.SCRAPED, strategy=hit.strategy)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.debug("resolver error for %s: %s", item.url, e)
        trace.record(T.RESOLVER_ERROR, item.url, error=f"{type(e).__name__}: {e}")
        return _unknown(item)
