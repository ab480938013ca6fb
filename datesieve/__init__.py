"""
datesieve - publication-date resolution and range filtering for search results.
"""

__version__ = "1.0.0"

from .web import (
    BatchPolicy,
    DateFilterConfig,
    DateRange,
    DateSource,
    ResultItem,
    filter_by_range,
    filter_results,
    filter_results_sync,
)

__all__ = [
    "BatchPolicy",
    "DateFilterConfig",
    "DateRange",
    "DateSource",
    "ResultItem",
    "filter_by_range",
    "filter_results",
    "filter_results_sync",
]
