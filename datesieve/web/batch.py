from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from . import trace as T
from .config import DateFilterConfig
from .fetch import Fetcher, make_fetcher
from .models import BatchPolicy, DateRange, DateSource, Decision, ResolutionOutcome, ResultItem
from .range_filter import decide
from .resolve import provided_outcome, resolve_item
from .trace import DateTrace, NullTrace

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _fold(outcome: ResolutionOutcome, date_range: DateRange, policy: BatchPolicy, kept: List[ResultItem], trace: DateTrace) -> Decision:
    verdict = decide(outcome, date_range, policy.strict_mode)
    item = outcome.item
    if verdict is Decision.KEEP:
        kept.append(item)
        trace.record(T.KEPT, item.url, source=outcome.source.value)
    elif outcome.resolved_date is not None:
        trace.record(T.DROPPED_OUT_OF_RANGE, item.url, date=outcome.resolved_date.isoformat(), source=outcome.source.value)
    else:
        trace.record(T.DROPPED_UNDATED, item.url, source=outcome.source.value)
    return verdict


async def _resolve_with_budget(
    item: ResultItem,
    budget: float,
    *,
    fetcher: Fetcher,
    cfg: DateFilterConfig,
    trace: DateTrace,
) -> ResolutionOutcome:
    try:
        return await asyncio.wait_for(
            resolve_item(item, timeout=budget, fetcher=fetcher, cfg=cfg, trace=trace),
            timeout=budget,
        )
    except asyncio.TimeoutError:
        trace.record(T.TIMEOUT, item.url, budget_s=round(budget, 3))
        item.date_source = DateSource.UNKNOWN
        return ResolutionOutcome(item, None, DateSource.UNKNOWN)


async def filter_by_range(
    items: Iterable[ResultItem],
    date_range: DateRange,
    policy: Optional[BatchPolicy] = None,
    *,
    fetcher: Optional[Fetcher] = None,
    cfg: Optional[DateFilterConfig] = None,
    trace: Optional[DateTrace] = None,
    clock: Clock = time.monotonic,
) -> List[ResultItem]:
    """Keep the items published inside ``date_range``.

    Phase 1 decides every item whose ``published_date`` already parses, with no
    I/O. Phase 2 resolves the rest in waves of ``policy.concurrency``; before
    each wave the overall deadline is checked and, once it is spent, every item
    not yet processed is kept (lenient) or dropped (strict) without a fetch.

    Output order is not guaranteed to follow input order. Items are mutated in
    place (``published_date`` / ``date_source``). ``date_range.start <= end``
    is a precondition and is not checked.
    """
    cfg = cfg or DateFilterConfig()
    policy = policy or BatchPolicy.from_config(cfg)
    trace = trace or NullTrace()
    fetcher = fetcher or make_fetcher(cfg)
    started = clock()

    kept: List[ResultItem] = []
    needs_resolution: List[ResultItem] = []
    total = 0

    # Phase 1: no network
    for item in items:
        total += 1
        pre = provided_outcome(item)
        if pre is None:
            needs_resolution.append(item)
            continue
        item.date_source = pre.source
        trace.record(T.PROVIDED, item.url, date=pre.resolved_date.isoformat())
        _fold(pre, date_range, policy, kept, trace)

    logger.info("%d items already dated, %d need resolution", total - len(needs_resolution), len(needs_resolution))

    # Phase 2: bounded waves
    size = max(1, int(policy.concurrency))
    fetched = 0
    for start in range(0, len(needs_resolution), size):
        remaining = policy.overall_deadline - (clock() - started)
        if remaining <= 0:
            rest = needs_resolution[start:]
            trace.record(
                T.DEADLINE_FALLBACK,
                None,
                processed=start,
                remaining_items=len(rest),
                strict=policy.strict_mode,
            )
            for item in rest:
                item.date_source = DateSource.UNKNOWN
                _fold(ResolutionOutcome(item, None, DateSource.UNKNOWN), date_range, policy, kept, trace)
            break

        wave = needs_resolution[start:start + size]
        budget = policy.request_timeout(remaining)
        trace.record(T.WAVE_STARTED, None, index=start // size, size=len(wave), budget_s=round(budget, 3))
        results = await asyncio.gather(
            *(_resolve_with_budget(item, budget, fetcher=fetcher, cfg=cfg, trace=trace) for item in wave),
            return_exceptions=True,
        )
        fetched += len(wave)
        # Fold only after the whole wave settled
        for item, res in zip(wave, results):
            if isinstance(res, BaseException):
                if isinstance(res, asyncio.CancelledError):
                    raise res
                trace.record(T.RESOLVER_ERROR, item.url, error=f"{type(res).__name__}: {res}")
                item.date_source = DateSource.UNKNOWN
                res = ResolutionOutcome(item, None, DateSource.UNKNOWN)
            _fold(res, date_range, policy, kept, trace)

    trace.record(
        T.BATCH_SUMMARY,
        None,
        total=total,
        kept=len(kept),
        resolved=fetched,
        strict=policy.strict_mode,
        elapsed_s=round(clock() - started, 3),
    )
    logger.info("date filter kept %d items (resolved %d, strict=%s)", len(kept), fetched, policy.strict_mode)
    return kept


ItemLike = Union[ResultItem, Dict[str, Any]]


def coerce_items(items: Sequence[ItemLike]) -> List[ResultItem]:
    return [it if isinstance(it, ResultItem) else ResultItem.from_provider(it) for it in items]


async def filter_results(
    items: Sequence[ItemLike],
    start_date: str,
    end_date: str,
    strict_mode: bool = False,
    *,
    cfg: Optional[DateFilterConfig] = None,
    fetcher: Optional[Fetcher] = None,
    trace: Optional[DateTrace] = None,
) -> List[ResultItem]:
    """Entry point for callers holding ``YYYY-MM-DD`` strings and raw provider rows."""
    cfg = cfg or DateFilterConfig()
    date_range = DateRange.parse(start_date, end_date)
    policy = BatchPolicy.from_config(cfg, strict_mode=strict_mode)
    return await filter_by_range(coerce_items(items), date_range, policy, fetcher=fetcher, cfg=cfg, trace=trace)


def filter_results_sync(
    items: Sequence[ItemLike],
    start_date: str,
    end_date: str,
    strict_mode: bool = False,
    **kwargs: Any,
) -> List[ResultItem]:
    return asyncio.run(filter_results(items, start_date, end_date, strict_mode, **kwargs))
