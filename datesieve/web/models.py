from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import DateFilterConfig


class DateSource(str, Enum):
    NONE = "none"
    PROVIDED = "provided"
    SCRAPED = "scraped"
    UNKNOWN = "unknown"


class DocumentKind(str, Enum):
    PDF = "pdf"
    MARKUP = "markup"


class Decision(str, Enum):
    KEEP = "keep"
    DROP = "drop"


class ResultItem(BaseModel):
    """One search hit as handed over by a search provider.

    Only ``published_date`` and ``date_source`` are ever written by this package.
    Unknown provider fields are preserved so callers get their items back intact.
    """

    model_config = ConfigDict(extra="allow", validate_assignment=False)

    title: str = ""
    url: str
    content: str = ""
    published_date: Optional[str] = None
    date_source: DateSource = Field(default=DateSource.NONE)

    @classmethod
    def from_provider(cls, raw: Dict[str, Any]) -> "ResultItem":
        """Normalize the common provider shapes (Serper ``organic`` rows, Tavily results)."""
        data = dict(raw or {})
        url = data.pop("url", None) or data.pop("link", None) or ""
        content = data.pop("content", None)
        if content is None:
            content = data.pop("snippet", None) or ""
        published = None
        for key in ("published_date", "publishedDate", "date"):
            if data.get(key):
                published = str(data.pop(key))
                break
        for key in ("published_date", "publishedDate", "date"):
            data.pop(key, None)
        title = data.pop("title", None) or ""
        # date_source is engine-owned
        data.pop("date_source", None)
        data.pop("dateSource", None)
        return cls(title=title, url=url, content=content, published_date=published, **data)


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]``. ``start <= end`` is the caller's responsibility."""

    start: date
    end: date

    @classmethod
    def parse(cls, start: str, end: str) -> "DateRange":
        return cls(_parse_bound(start), _parse_bound(end))

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end


def _parse_bound(value: str) -> date:
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"expected YYYY-MM-DD, got {value!r}") from e


@dataclass(frozen=True)
class BatchPolicy:
    concurrency: int = 5
    overall_deadline: float = 25.0
    per_request_timeout: float = 8.0
    strict_mode: bool = False

    @classmethod
    def from_config(cls, cfg: Optional[DateFilterConfig] = None, *, strict_mode: Optional[bool] = None) -> "BatchPolicy":
        cfg = cfg or DateFilterConfig()
        return cls(
            concurrency=max(1, int(cfg.concurrency)),
            overall_deadline=float(cfg.overall_deadline_s),
            per_request_timeout=float(cfg.request_timeout_s),
            strict_mode=cfg.strict_mode if strict_mode is None else bool(strict_mode),
        )

    def request_timeout(self, remaining: float) -> float:
        """Per-request timeout clamped to what is left of the overall budget."""
        return max(0.0, min(self.per_request_timeout, remaining))


@dataclass
class ResolutionOutcome:
    item: ResultItem
    resolved_date: Optional[date]
    source: DateSource
    strategy: Optional[str] = None
