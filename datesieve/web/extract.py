from __future__ import annotations
import html as _html
import io
import json
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, List, Optional, Tuple
from datetime import date

from .config import DateFilterConfig
from .dates import (
    DateMatch,
    date_from_text,
    date_from_url,
    parse_pdf_date,
    parse_timestamp,
    plausible_year,
)
from .models import DocumentKind

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """Raw material for date extraction: the URL plus whatever body was retrieved."""

    url: str
    kind: DocumentKind = DocumentKind.MARKUP
    body: bytes = b""
    text: Optional[str] = None  # decoded markup, when the fetcher already has it


@dataclass
class PdfContent:
    creation_date: Optional[str] = None
    mod_date: Optional[str] = None
    first_page_text: str = ""
    used: dict = field(default_factory=dict)


def read_pdf(bin_data: bytes) -> PdfContent:
    """Info dictionary dates and first-page text. Never raises."""
    out = PdfContent(used={"pymupdf": False, "pdfminer": False})
    if not bin_data:
        return out
    # Prefer PyMuPDF for speed/robustness
    try:
        import fitz  # PyMuPDF

        with fitz.open(stream=bin_data, filetype="pdf") as doc:
            meta = doc.metadata or {}
            out.creation_date = meta.get("creationDate") or None
            out.mod_date = meta.get("modDate") or None
            if doc.page_count:
                out.first_page_text = doc[0].get_text() or ""
        out.used["pymupdf"] = True
        return out
    except Exception as e:
        logger.debug("PyMuPDF could not read PDF: %s", e)
    # Fallback to pdfminer when PyMuPDF is unavailable or chokes on the file
    try:
        from pdfminer.high_level import extract_text
        from pdfminer.pdfdocument import PDFDocument
        from pdfminer.pdfparser import PDFParser
        from pdfminer.pdftypes import resolve1

        with io.BytesIO(bin_data) as fp:
            doc = PDFDocument(PDFParser(fp))
            for info in doc.info or []:
                out.creation_date = out.creation_date or _pdf_str(resolve1(info.get("CreationDate")))
                out.mod_date = out.mod_date or _pdf_str(resolve1(info.get("ModDate")))
        with io.BytesIO(bin_data) as fp:
            out.first_page_text = extract_text(fp, maxpages=1) or ""
        out.used["pdfminer"] = True
    except Exception as e:
        logger.debug("pdfminer could not read PDF: %s", e)
    return out


def _pdf_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("latin-1", errors="ignore")
    return str(value)


# ---------------------------------------------------------------------------
# Markup helpers
# ---------------------------------------------------------------------------

_META_TAG = re.compile(r"<meta\b[^>]*>", re.I)
_ATTR = re.compile(r"""([a-zA-Z_:][\w:.\-]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
# Highest confidence first
META_KEYS: Tuple[str, ...] = (
    "article:published_time",
    "og:published_time",
    "article:published",
    "datepublished",
    "date",
    "publish_date",
    "publish-date",
    "publishdate",
    "pubdate",
    "dc.date",
    "dc.date.issued",
    "dc.date.created",
    "dcterms.date",
    "dcterms.created",
)
_LD_JSON = re.compile(r"<script[^>]+type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>", re.I | re.S)
_TIME_ATTR = re.compile(r"<time\b[^>]*\bdatetime\s*=\s*[\"']([^\"']+)[\"']", re.I)
_SCRIPT_STYLE = re.compile(r"<(script|style|noscript)\b[^>]*>.*?</\1\s*>", re.I | re.S)
_COMMENT = re.compile(r"<!--.*?-->", re.S)
_TAG = re.compile(r"<[^>]+>")
_WS = re.compile(r"\s+")
# Candidates are short element texts; longer runs are prose, not dates
_CLASS_PATTERNS = (
    re.compile(r"<[^>]*class=[\"'][^\"']*(?:date|published|posted|timestamp)[^\"']*[\"'][^>]*>\s*([^<]{5,30}?)\s*<", re.I),
    re.compile(r"<span[^>]*>\s*(?:Published|Posted|Date)[:\s]*([^<]{5,30}?)\s*<", re.I),
    re.compile(
        r">\s*(?:Published|Posted|Date|Updated)\s*:?\s*</[a-z0-9]+>\s*<[a-z0-9]+[^>]*>\s*([^<]{5,30}?)\s*<",
        re.I,
    ),
)


def _meta_tags(markup: str) -> List[dict]:
    tags = []
    for tag in _META_TAG.findall(markup):
        attrs = {}
        for k, dq, sq in _ATTR.findall(tag):
            attrs[k.lower()] = dq if dq else sq
        tags.append(attrs)
    return tags


def _find_ld_date(obj: Any, key: str) -> Optional[date]:
    if isinstance(obj, dict):
        d = parse_timestamp(obj.get(key)) if isinstance(obj.get(key), str) else None
        if d:
            return d
        for v in obj.values():
            r = _find_ld_date(v, key)
            if r:
                return r
    if isinstance(obj, list):
        for it in obj:
            r = _find_ld_date(it, key)
            if r:
                return r
    return None


def _clean_ld_block(raw: str) -> str:
    s = raw.strip()
    s = re.sub(r"^\s*(?://\s*)?<!\[CDATA\[", "", s)
    s = re.sub(r"(?://\s*)?\]\]>\s*$", "", s)
    return s.strip()


def visible_text(markup: str) -> str:
    s = _SCRIPT_STYLE.sub(" ", markup or "")
    s = _COMMENT.sub(" ", s)
    s = _TAG.sub(" ", s)
    s = _html.unescape(s)
    return _WS.sub(" ", s).strip()


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------

class _View:
    """Lazily derived forms of one document, shared by the extractors."""

    def __init__(self, doc: Document, cfg: DateFilterConfig) -> None:
        self.doc = doc
        self.cfg = cfg

    @cached_property
    def markup(self) -> str:
        if self.doc.text is not None:
            return self.doc.text
        return (self.doc.body or b"").decode("utf-8", errors="ignore")

    @cached_property
    def markup_no_scripts(self) -> str:
        return _SCRIPT_STYLE.sub(" ", self.markup)

    @cached_property
    def text(self) -> str:
        return visible_text(self.markup)[: max(0, self.cfg.markup_scan_chars)]

    @cached_property
    def pdf(self) -> PdfContent:
        return read_pdf(self.doc.body)


Extractor = Callable[[_View], Optional[DateMatch]]


def _from_meta(v: _View) -> Optional[DateMatch]:
    tags = _meta_tags(v.markup)
    for key in META_KEYS:
        for attrs in tags:
            names = {attrs.get("property", "").lower(), attrs.get("name", "").lower(), attrs.get("itemprop", "").lower()}
            if key not in names:
                continue
            d = parse_timestamp(attrs.get("content"))
            if d:
                return DateMatch(d, f"meta:{key}")
    return None


def _from_json_ld(v: _View) -> Optional[DateMatch]:
    blocks = _LD_JSON.findall(v.markup)
    for key in ("datePublished", "dateCreated"):
        for raw in blocks:
            try:
                data = json.loads(_clean_ld_block(raw))
            except ValueError:
                continue
            d = _find_ld_date(data, key)
            if d:
                return DateMatch(d, f"json_ld:{key}")
    return None


def _from_time_element(v: _View) -> Optional[DateMatch]:
    for raw in _TIME_ATTR.findall(v.markup):
        d = parse_timestamp(raw)
        if d:
            return DateMatch(d, "time_element")
    return None


def _from_url(v: _View) -> Optional[DateMatch]:
    return date_from_url(v.doc.url)


def _from_markup_text(v: _View) -> Optional[DateMatch]:
    return date_from_text(v.text)


def _from_class_heuristics(v: _View) -> Optional[DateMatch]:
    for rx in _CLASS_PATTERNS:
        for candidate in rx.findall(v.markup_no_scripts):
            text = _html.unescape(candidate).strip()
            if not text:
                continue
            # Spelled-out dates only; version numbers and addresses must not parse
            hit = date_from_text(text)
            d = hit.value if hit else parse_timestamp(text)
            if d and plausible_year(d, future_slack=v.cfg.future_year_slack):
                return DateMatch(d, "markup_heuristic")
    return None


def _from_pdf_metadata(v: _View) -> Optional[DateMatch]:
    for label, raw in (("pdf:creation_date", v.pdf.creation_date), ("pdf:mod_date", v.pdf.mod_date)):
        d = parse_pdf_date(raw)
        if d:
            return DateMatch(d, label)
    return None


def _from_pdf_text(v: _View) -> Optional[DateMatch]:
    hit = date_from_text((v.pdf.first_page_text or "")[: max(0, v.cfg.text_scan_chars)])
    if hit:
        return DateMatch(hit.value, f"pdf_{hit.strategy}")
    return None


MARKUP_CASCADE: Tuple[Extractor, ...] = (
    _from_meta,
    _from_json_ld,
    _from_time_element,
    _from_url,
    _from_markup_text,
    _from_class_heuristics,
)
PDF_CASCADE: Tuple[Extractor, ...] = (
    _from_pdf_metadata,
    _from_pdf_text,
    _from_url,
)


def find_document_date(doc: Document, *, cfg: Optional[DateFilterConfig] = None) -> Optional[DateMatch]:
    """Run the cascade for the document kind; first strategy with a real date wins."""
    cfg = cfg or DateFilterConfig()
    view = _View(doc, cfg)
    cascade = PDF_CASCADE if doc.kind is DocumentKind.PDF else MARKUP_CASCADE
    for extractor in cascade:
        try:
            hit = extractor(view)
        except Exception as e:
            # One broken strategy must not hide the ones below it
            logger.debug("date extractor %s failed for %s: %s", extractor.__name__, doc.url, e)
            continue
        if hit:
            return hit
    return None


def extract_date(doc: Document, *, cfg: Optional[DateFilterConfig] = None) -> Optional[date]:
    hit = find_document_date(doc, cfg=cfg)
    return hit.value if hit else None


def extract_html_date(markup: str, url: str = "", *, cfg: Optional[DateFilterConfig] = None) -> Optional[date]:
    return extract_date(Document(url=url, kind=DocumentKind.MARKUP, text=markup), cfg=cfg)


def extract_pdf_date(bin_data: bytes, url: str = "", *, cfg: Optional[DateFilterConfig] = None) -> Optional[date]:
    return extract_date(Document(url=url, kind=DocumentKind.PDF, body=bin_data), cfg=cfg)


def extract_url_date(url: str) -> Optional[date]:
    hit = date_from_url(url)
    return hit.value if hit else None
