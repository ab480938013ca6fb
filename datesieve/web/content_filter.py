from __future__ import annotations
import logging
from typing import Iterable, List
from urllib.parse import urlparse

from .models import ResultItem

logger = logging.getLogger(__name__)

# Standalone policy/profile pages; articles that merely mention privacy in the path are kept
_POLICY_SUFFIXES = ("/cookie-policy", "/cookie-notice", "/privacy-policy", "/privacy-notice", "/cookies")
_GENERIC_SUFFIXES = ("/about-us", "/contact", "/careers")
_POLICY_TITLES = {"cookie notice", "cookie policy", "privacy policy"}


def non_content_reason(item: ResultItem) -> str:
    """Why ``item`` is not an article, or '' when it looks like content."""
    try:
        path = urlparse(item.url).path.lower().rstrip("/")
    except ValueError:
        path = ""
    if path.endswith(_POLICY_SUFFIXES):
        return "policy page"
    if path.endswith(_GENERIC_SUFFIXES):
        return "generic page"
    if (item.title or "").strip().lower() in _POLICY_TITLES:
        return "policy title"
    return ""


def drop_non_content(items: Iterable[ResultItem]) -> List[ResultItem]:
    out: List[ResultItem] = []
    for item in items:
        reason = non_content_reason(item)
        if reason:
            logger.debug("dropped non-content result (%s): %s", reason, item.url)
            continue
        out.append(item)
    return out
