"""Pytest session bootstrap for this repository.

Responsibilities:
- Ensure the repository root (containing the ``datesieve`` package) is importable
- Set safe, fast defaults for the date filter under tests

All environment defaults here are set with ``setdefault`` so individual tests
can override them with ``monkeypatch.setenv`` when needed.
"""

import os
import sys

import pytest

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Fail fast if something accidentally reaches the network
os.environ.setdefault("DATE_FILTER_REQUEST_TIMEOUT_S", "2.0")
os.environ.setdefault("DATE_FILTER_OVERALL_DEADLINE_S", "10.0")
os.environ.setdefault("DATE_FILTER_STRICT", "0")


class FakeFetcher:
    """Async stand-in for the HTTP fetcher.

    ``pages`` maps URL -> (content_type, body). Unknown URLs fail like a 404.
    Records every call plus the peak number of concurrent calls.
    """

    def __init__(self, pages=None, *, delay=0.0, on_call=None):
        self.pages = dict(pages or {})
        self.delay = delay
        self.on_call = on_call
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, url, timeout):
        import asyncio

        from datesieve.web.fetch import FetchResult, classify

        self.calls.append((url, timeout))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                self.on_call(url)
            if self.delay:
                await asyncio.sleep(self.delay)
            if url not in self.pages:
                return FetchResult(False, 404, url, url, "text/html", classify(url), reason="HTTP 404")
            ctype, body = self.pages[url]
            kind = classify(url, ctype)
            raw = body.encode("utf-8") if isinstance(body, str) else body
            text = body if isinstance(body, str) else None
            return FetchResult(True, 200, url, url, ctype, kind, body=raw, text=text)
        finally:
            self.in_flight -= 1

    @property
    def urls(self):
        return [u for u, _ in self.calls]


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def html_page():
    def _page(head="", body=""):
        return f"<html><head><title>t</title>{head}</head><body>{body}</body></html>"
    return _page


def mk_item(url, published=None, title="T", content=""):
    from datesieve.web.models import ResultItem

    return ResultItem(title=title, url=url, content=content, published_date=published)


@pytest.fixture
def item():
    return mk_item
