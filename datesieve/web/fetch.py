from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urlparse

import httpx

from .config import DateFilterConfig
from .extract import Document
from .models import DocumentKind

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    ok: bool
    status: int
    url: str
    final_url: str
    content_type: str
    kind: DocumentKind
    body: bytes = b""
    text: Optional[str] = None
    elapsed_ms: int = 0
    reason: Optional[str] = None

    def as_document(self) -> Document:
        return Document(url=self.final_url or self.url, kind=self.kind, body=self.body, text=self.text)


# (url, timeout_seconds) -> FetchResult; the scheduler and resolver only depend on this shape
Fetcher = Callable[[str, float], Awaitable[FetchResult]]


def is_pdf_url(url: str) -> bool:
    lower = (url or "").lower()
    try:
        path = urlparse(lower).path
    except ValueError:
        path = lower
    return path.endswith(".pdf") or ".pdf?" in lower


def is_pdf_content_type(content_type: str) -> bool:
    return "application/pdf" in (content_type or "").lower()


def classify(url: str, content_type: str = "") -> DocumentKind:
    if is_pdf_url(url) or is_pdf_content_type(content_type):
        return DocumentKind.PDF
    return DocumentKind.MARKUP


def _failure(url: str, reason: str, *, status: int = 0, content_type: str = "", started: Optional[float] = None) -> FetchResult:
    elapsed = int((time.monotonic() - started) * 1000) if started else 0
    return FetchResult(False, status, url, url, content_type, classify(url, content_type), elapsed_ms=elapsed, reason=reason)


def _client(cfg: DateFilterConfig, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    kwargs: Dict[str, object] = {
        "timeout": httpx.Timeout(timeout),
        "headers": cfg.as_headers(),
        "follow_redirects": cfg.follow_redirects,
        # Only cfg drives behavior; ignore proxy/netrc env
        "trust_env": False,
    }
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


async def _get(client: httpx.AsyncClient, url: str, cfg: DateFilterConfig, started: float) -> FetchResult:
    async with client.stream("GET", url) as resp:
        content_type = resp.headers.get("content-type", "")
        final_url = str(resp.url)
        if not (200 <= resp.status_code < 300):
            return _failure(url, f"HTTP {resp.status_code}", status=resp.status_code, content_type=content_type, started=started)
        # Read with cap
        buf = bytearray()
        async for chunk in resp.aiter_bytes():
            if chunk:
                buf += chunk
                if len(buf) >= cfg.max_download_bytes:
                    break
        body = bytes(buf[: cfg.max_download_bytes])
        kind = classify(url, content_type)
        text = None
        if kind is DocumentKind.MARKUP:
            encoding = resp.charset_encoding or "utf-8"
            try:
                text = body.decode(encoding, errors="ignore")
            except LookupError:
                text = body.decode("utf-8", errors="ignore")
        return FetchResult(
            True,
            resp.status_code,
            url,
            final_url,
            content_type,
            kind,
            body=body,
            text=text,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )


async def fetch_document(
    url: str,
    timeout: float,
    *,
    cfg: Optional[DateFilterConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchResult:
    """Single GET of ``url`` bounded by ``timeout`` seconds.

    Never raises for network trouble: timeouts, connection errors and non-2xx
    statuses all come back as ``FetchResult(ok=False, reason=...)``. Only task
    cancellation propagates. A caller-supplied ``client`` is used as-is and not
    closed.
    """
    cfg = cfg or DateFilterConfig()
    started = time.monotonic()
    if timeout <= 0:
        return _failure(url, "no time budget left", started=started)
    try:
        if client is not None:
            return await asyncio.wait_for(_get(client, url, cfg, started), timeout=timeout)
        async with _client(cfg, timeout) as own:
            return await asyncio.wait_for(_get(own, url, cfg, started), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("fetch timed out after %.1fs: %s", timeout, url)
        return _failure(url, "timeout", started=started)
    except httpx.TimeoutException as e:
        logger.debug("fetch timed out: %s (%s)", url, e)
        return _failure(url, "timeout", started=started)
    except httpx.HTTPError as e:
        logger.debug("fetch failed: %s (%s)", url, e)
        return _failure(url, f"{type(e).__name__}: {e}", started=started)
    except Exception as e:
        logger.debug("fetch error: %s (%s)", url, e)
        return _failure(url, f"{type(e).__name__}: {e}", started=started)


def make_fetcher(cfg: Optional[DateFilterConfig] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> Fetcher:
    """Bind configuration (and optionally a transport, e.g. ``httpx.MockTransport``)."""
    cfg = cfg or DateFilterConfig()

    async def _fetch(url: str, timeout: float) -> FetchResult:
        if transport is None:
            return await fetch_document(url, timeout, cfg=cfg)
        async with _client(cfg, timeout, transport) as client:
            return await fetch_document(url, timeout, cfg=cfg, client=client)

    return _fetch
