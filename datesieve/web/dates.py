"""Date grammars shared by the document extractors.

Everything here is pure: strings in, ``datetime.date`` (or None) out. Any
candidate that does not form a real calendar date is discarded so callers can
move on to the next strategy.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterator, List, Optional, Tuple

from dateutil import parser as _date_parser


@dataclass(frozen=True)
class DateMatch:
    value: date
    strategy: str

    def isoformat(self) -> str:
        return self.value.isoformat()


MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
MONTHS_ABBREV = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec"
_YEAR = r"(20[0-3]\d)"

_MONTH_INDEX = {name.lower(): i for i, name in enumerate(MONTHS.split("|"), start=1)}
_MONTH_INDEX.update({name.lower(): i for i, name in enumerate(MONTHS_ABBREV.replace("Sept|", "").split("|"), start=1)})
_MONTH_INDEX["sept"] = 9


def make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except (TypeError, ValueError):
        return None


def month_number(name: str) -> Optional[int]:
    return _MONTH_INDEX.get((name or "").strip().rstrip(".").lower())


# ---------------------------------------------------------------------------
# Timestamp grammar (metadata values, JSON-LD values, <time datetime>)
# ---------------------------------------------------------------------------

_ISO_PREFIX = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})")
_HAS_YEAR = re.compile(r"(?<!\d)(1[89]\d{2}|2\d{3})(?!\d)")
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def parse_timestamp(value: Optional[str]) -> Optional[date]:
    """Parse a machine-ish timestamp into a calendar date.

    ISO-8601 is tried first and the date is taken as written (no timezone shift).
    Other forms go through dateutil but must spell out year, month and day
    explicitly; a value such as ``"2024"`` or ``"3 days ago"`` yields None.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    m = _ISO_PREFIX.match(s)
    if m:
        return make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    if not _HAS_YEAR.search(s):
        return None
    try:
        a = _date_parser.parse(s, default=_DEFAULT_A)
        b = _date_parser.parse(s, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError):
        return None
    # Differing results mean dateutil filled a missing component from the default
    if a.date() != b.date():
        return None
    return a.date()


_PDF_DATE = re.compile(r"^\s*(?:D:)?(\d{4})(\d{2})(\d{2})")


def parse_pdf_date(value: Optional[str]) -> Optional[date]:
    """``D:YYYYMMDDHHmmSS...`` as found in PDF info dictionaries."""
    if not value:
        return None
    m = _PDF_DATE.match(str(value))
    if not m:
        return None
    return make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))


# ---------------------------------------------------------------------------
# URL path convention
# ---------------------------------------------------------------------------

_URL_YMD = re.compile(r"/(\d{4})[-/](\d{2})[-/](\d{2})(?=[/\-_.]|$)")
_URL_YM = re.compile(r"/(\d{4})/(\d{2})(?:/(?=[A-Za-z0-9])|/?$)")
_URL_YM_LOOSE = re.compile(r"/(\d{4})/(\d{2})(?=[/\-]|$)")

# Day used when a path only carries year and month
MID_MONTH_DAY = 15


def date_from_url(url: Optional[str]) -> Optional[DateMatch]:
    """``/YYYY/MM/DD/`` wins; ``/YYYY/MM/<slug>`` or a trailing ``/YYYY/MM`` falls back to the 15th."""
    if not url:
        return None
    path = re.sub(r"[?#].*$", "", str(url))
    for m in _URL_YMD.finditer(path):
        d = make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if d:
            return DateMatch(d, "url_ymd")
    for rx in (_URL_YM, _URL_YM_LOOSE):
        for m in rx.finditer(path):
            d = make_date(int(m.group(1)), int(m.group(2)), MID_MONTH_DAY)
            if d:
                return DateMatch(d, "url_ym")
    return None


# ---------------------------------------------------------------------------
# Free-text patterns
# ---------------------------------------------------------------------------

def _long_mdy(m: "re.Match[str]") -> Optional[date]:
    return make_date(int(m.group(3)), month_number(m.group(1)) or 0, int(m.group(2)))


def _long_dmy(m: "re.Match[str]") -> Optional[date]:
    return make_date(int(m.group(3)), month_number(m.group(2)) or 0, int(m.group(1)))


def _labeled(m: "re.Match[str]") -> Optional[date]:
    # "Published: January 15, 2025" or "Last review date: 31 December 2024"
    lead_day, month, trail_day, year = m.group(1), m.group(2), m.group(3), m.group(4)
    day = lead_day or trail_day
    if not day:
        return None
    return make_date(int(year), month_number(month) or 0, int(day))


def _iso(m: "re.Match[str]") -> Optional[date]:
    return make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def _slash_numeric(m: "re.Match[str]") -> Optional[date]:
    first, second, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    # US ordering first; day-first only when the US reading is not a real date
    return make_date(year, first, second) or make_date(year, second, first)


_Converter = Callable[["re.Match[str]"], Optional[date]]

TEXT_PATTERNS: List[Tuple[str, "re.Pattern[str]", _Converter]] = [
    (
        "text_labeled",
        re.compile(
            rf"(?:date|published|posted|updated|review)\s*[:\-]?\s+(?:on\s+)?(?:(\d{{1,2}})\s+)?({MONTHS})\s*(\d{{1,2}})?,?\s+{_YEAR}",
            re.I,
        ),
        _labeled,
    ),
    ("text_long_mdy", re.compile(rf"\b({MONTHS})\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+{_YEAR}", re.I), _long_mdy),
    ("text_long_dmy", re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({MONTHS}),?\s+{_YEAR}", re.I), _long_dmy),
    ("text_abbrev_mdy", re.compile(rf"\b({MONTHS_ABBREV})\.?\s+(\d{{1,2}}),?\s+{_YEAR}", re.I), _long_mdy),
    ("text_abbrev_dmy", re.compile(rf"\b(\d{{1,2}})[-\s]({MONTHS_ABBREV})\.?[-\s]{_YEAR}", re.I), _long_dmy),
    ("text_iso", re.compile(rf"\b{_YEAR}[-/](0[1-9]|1[0-2])[-/](0[1-9]|[12]\d|3[01])\b"), _iso),
    ("text_dotted", re.compile(rf"\b{_YEAR}\.(0[1-9]|1[0-2])\.(0[1-9]|[12]\d|3[01])\b"), _iso),
    ("text_slash", re.compile(rf"\b(\d{{1,2}})/(\d{{1,2}})/{_YEAR}\b"), _slash_numeric),
]


def _iter_text_dates(text: str) -> Iterator[DateMatch]:
    for name, rx, convert in TEXT_PATTERNS:
        for m in rx.finditer(text):
            d = convert(m)
            if d:
                yield DateMatch(d, name)
                break


def date_from_text(text: Optional[str]) -> Optional[DateMatch]:
    """First pattern (in priority order) that yields a real date."""
    if not text:
        return None
    for hit in _iter_text_dates(text):
        return hit
    return None


def plausible_year(value: date, *, future_slack: int = 1, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return 2000 <= value.year <= today.year + max(0, future_slack)
