from datetime import date

import pytest

from datesieve.web.models import DateRange, DateSource, Decision, ResolutionOutcome
from datesieve.web.range_filter import decide

RANGE = DateRange(date(2025, 1, 1), date(2025, 6, 30))


def _outcome(item, d, source):
    return ResolutionOutcome(item("https://example.com/x"), d, source)


@pytest.mark.parametrize(
    "d, expected",
    [
        (date(2025, 1, 1), Decision.KEEP),
        (date(2025, 6, 30), Decision.KEEP),
        (date(2025, 3, 15), Decision.KEEP),
        (date(2024, 12, 31), Decision.DROP),
        (date(2025, 7, 1), Decision.DROP),
    ],
)
@pytest.mark.parametrize("source", [DateSource.PROVIDED, DateSource.SCRAPED])
@pytest.mark.parametrize("strict", [False, True])
def test_dated_items_ignore_strictness(item, d, expected, source, strict):
    assert decide(_outcome(item, d, source), RANGE, strict) is expected


def test_undated_items_depend_on_strictness(item):
    undated = _outcome(item, None, DateSource.UNKNOWN)
    assert decide(undated, RANGE, False) is Decision.KEEP
    assert decide(undated, RANGE, True) is Decision.DROP


def test_date_range_parse():
    r = DateRange.parse("2025-01-01", "2025-06-30T23:59:59Z")
    assert r == RANGE
    assert date(2025, 2, 2) in r
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        DateRange.parse("01/01/2025", "2025-06-30")
