import pytest

from datesieve.utils import load_result_rows
from datesieve.web.config import DateFilterConfig
from datesieve.web.models import BatchPolicy, DateSource, ResultItem


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DATE_FILTER_CONCURRENCY", "7")
    monkeypatch.setenv("DATE_FILTER_OVERALL_DEADLINE_S", "12.5")
    monkeypatch.setenv("DATE_FILTER_STRICT", "true")
    monkeypatch.setenv("DATE_FILTER_UA", "probe/2")
    cfg = DateFilterConfig()
    assert cfg.concurrency == 7
    assert cfg.overall_deadline_s == 12.5
    assert cfg.strict_mode is True
    assert cfg.as_headers()["User-Agent"] == "probe/2"


def test_invalid_env_falls_back_to_defaults(monkeypatch):
    monkeypatch.setenv("DATE_FILTER_CONCURRENCY", "many")
    monkeypatch.setenv("DATE_FILTER_REQUEST_TIMEOUT_S", "")
    cfg = DateFilterConfig()
    assert cfg.concurrency == 5
    assert cfg.request_timeout_s == 8.0


def test_explicit_arguments_win(monkeypatch):
    monkeypatch.setenv("DATE_FILTER_CONCURRENCY", "7")
    assert DateFilterConfig(concurrency=2).concurrency == 2


def test_policy_from_config():
    cfg = DateFilterConfig(concurrency=0, overall_deadline_s=25, request_timeout_s=8, strict_mode=False)
    policy = BatchPolicy.from_config(cfg, strict_mode=True)
    assert policy == BatchPolicy(concurrency=1, overall_deadline=25.0, per_request_timeout=8.0, strict_mode=True)
    assert policy.request_timeout(30) == 8.0
    assert policy.request_timeout(3.5) == 3.5
    assert policy.request_timeout(-1) == 0.0


def test_from_provider_normalizes_and_keeps_extras():
    it = ResultItem.from_provider({
        "title": "T",
        "link": "https://example.com/x",
        "snippet": "text",
        "publishedDate": "2025-01-02",
        "dateSource": "scraped",
        "sitelinks": [{"title": "s"}],
    })
    assert it.url == "https://example.com/x"
    assert it.content == "text"
    assert it.published_date == "2025-01-02"
    assert it.date_source is DateSource.NONE
    assert it.model_dump()["sitelinks"] == [{"title": "s"}]


def test_load_result_rows():
    assert load_result_rows('[{"url": "a"}]') == [{"url": "a"}]
    assert load_result_rows('{"results": [{"url": "b"}]}') == [{"url": "b"}]
    with pytest.raises(ValueError):
        load_result_rows('{"answer": "x"}')
    with pytest.raises(ValueError):
        load_result_rows('[1, 2]')
