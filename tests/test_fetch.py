import httpx
import pytest

from datesieve.web.config import DateFilterConfig
from datesieve.web.fetch import classify, fetch_document, is_pdf_url, make_fetcher
from datesieve.web.models import DocumentKind


def _fetcher(handler, **cfg_kwargs):
    cfg = DateFilterConfig(**cfg_kwargs)
    return make_fetcher(cfg, transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/a/report.pdf", True),
        ("https://example.com/a/REPORT.PDF", True),
        ("https://example.com/report.pdf?dl=1", True),
        ("https://example.com/pdf-guide", False),
        ("https://example.com/a.pdfx", False),
    ],
)
def test_is_pdf_url(url, expected):
    assert is_pdf_url(url) is expected


def test_classify_uses_content_type():
    assert classify("https://example.com/download?id=3", "application/pdf") is DocumentKind.PDF
    assert classify("https://example.com/post", "text/html; charset=utf-8") is DocumentKind.MARKUP


@pytest.mark.asyncio
async def test_fetch_html_sends_user_agent():
    seen = {}

    def handler(request):
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"}, content="<p>café</p>".encode("utf-8"))

    res = await _fetcher(handler, user_agent="sieve-test/1.0")("https://example.com/post", 2.0)
    assert res.ok and res.status == 200
    assert res.kind is DocumentKind.MARKUP
    assert res.text == "<p>café</p>"
    assert seen["ua"] == "sieve-test/1.0"


@pytest.mark.asyncio
async def test_pdf_content_type_reclassifies_document():
    def handler(request):
        return httpx.Response(200, headers={"content-type": "application/pdf"}, content=b"%PDF-1.7 ...")

    res = await _fetcher(handler)("https://example.com/download?id=3", 2.0)
    assert res.ok
    assert res.kind is DocumentKind.PDF
    assert res.text is None
    assert res.as_document().body.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_non_2xx_is_a_failure():
    res = await _fetcher(lambda request: httpx.Response(403, text="nope"))("https://example.com/post", 2.0)
    assert not res.ok
    assert res.status == 403
    assert res.reason == "HTTP 403"


@pytest.mark.asyncio
async def test_network_errors_become_failures():
    def timeout(request):
        raise httpx.ConnectTimeout("slow", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    res = await _fetcher(timeout)("https://example.com/a", 2.0)
    assert not res.ok and res.reason == "timeout"

    res = await _fetcher(refused)("https://example.com/report.pdf", 2.0)
    assert not res.ok
    assert res.reason.startswith("ConnectError")
    assert res.kind is DocumentKind.PDF


@pytest.mark.asyncio
async def test_download_is_capped():
    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/html"}, content=b"a" * 500)

    res = await _fetcher(handler, max_download_bytes=64)("https://example.com/big", 2.0)
    assert res.ok
    assert len(res.body) == 64


@pytest.mark.asyncio
async def test_redirect_reports_final_url():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"location": "https://example.com/2024/05/new-home"})
        return httpx.Response(200, headers={"content-type": "text/html"}, text="<p>moved</p>")

    res = await _fetcher(handler)("https://example.com/old", 2.0)
    assert res.ok
    assert res.url == "https://example.com/old"
    assert res.final_url == "https://example.com/2024/05/new-home"
    assert res.as_document().url == res.final_url


@pytest.mark.asyncio
async def test_no_budget_left_skips_the_request():
    res = await fetch_document("https://example.com/a", 0)
    assert not res.ok
    assert res.reason == "no time budget left"
