from .config import DateFilterConfig
from .models import BatchPolicy, DateRange, DateSource, Decision, DocumentKind, ResolutionOutcome, ResultItem
from .extract import Document, extract_date, extract_html_date, extract_pdf_date, extract_url_date, find_document_date
from .fetch import FetchResult, fetch_document, make_fetcher
from .resolve import resolve_item
from .range_filter import decide
from .batch import filter_by_range, filter_results, filter_results_sync
from .trace import DateTrace, TraceEvent
from .content_filter import drop_non_content
