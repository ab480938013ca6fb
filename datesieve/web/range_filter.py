from __future__ import annotations

from .models import DateRange, DateSource, Decision, ResolutionOutcome


def decide(outcome: ResolutionOutcome, date_range: DateRange, strict_mode: bool) -> Decision:
    """Keep/drop for one outcome.

    Dated outcomes are kept iff the date falls inside the inclusive range.
    Undated outcomes get the benefit of the doubt unless ``strict_mode``.
    """
    dated = outcome.source in (DateSource.PROVIDED, DateSource.SCRAPED) and outcome.resolved_date is not None
    if dated:
        return Decision.KEEP if date_range.start <= outcome.resolved_date <= date_range.end else Decision.DROP
    return Decision.DROP if strict_mode else Decision.KEEP
