from __future__ import annotations
import os
from dataclasses import dataclass, field


_TRUE = {"1", "true", "True", "yes", "on"}


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() in _TRUE


@dataclass(frozen=True)
class DateFilterConfig:
    """Runtime knobs for date resolution.

    Defaults are read from the environment when the instance is created (not at
    import), so tests that tweak env with monkeypatch are respected. Explicit
    keyword arguments always win over the environment.
    """

    # Identity
    user_agent: str = field(default_factory=lambda: _env_str(
        "DATE_FILTER_UA", "datesieve/1.0 (+https://github.com/datesieve; publication-date check)"))

    # Scheduling
    concurrency: int = field(default_factory=lambda: _env_int("DATE_FILTER_CONCURRENCY", 5))
    overall_deadline_s: float = field(default_factory=lambda: _env_float("DATE_FILTER_OVERALL_DEADLINE_S", 25.0))
    request_timeout_s: float = field(default_factory=lambda: _env_float("DATE_FILTER_REQUEST_TIMEOUT_S", 8.0))
    strict_mode: bool = field(default_factory=lambda: _env_bool("DATE_FILTER_STRICT", False))

    # Fetch behavior
    max_download_bytes: int = field(default_factory=lambda: _env_int("DATE_FILTER_MAX_DOWNLOAD_BYTES", 10485760))  # 10 MB
    follow_redirects: bool = field(default_factory=lambda: _env_bool("DATE_FILTER_FOLLOW_REDIRECTS", True))

    # Parser windows
    text_scan_chars: int = field(default_factory=lambda: _env_int("DATE_FILTER_TEXT_SCAN_CHARS", 2000))
    markup_scan_chars: int = field(default_factory=lambda: _env_int("DATE_FILTER_MARKUP_SCAN_CHARS", 20000))
    future_year_slack: int = field(default_factory=lambda: _env_int("DATE_FILTER_FUTURE_YEAR_SLACK", 1))

    def as_headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/pdf;q=0.9,text/plain;q=0.8,*/*;q=0.1",
        }
