import json

from datesieve import cli


def _write(tmp_path, data):
    path = tmp_path / "results.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_filters_file_without_network(tmp_path, capsys):
    path = _write(tmp_path, {"organic": [
        {"title": "In", "link": "https://example.com/in", "date": "2025-02-01"},
        {"title": "Out", "link": "https://example.com/out", "date": "2020-02-01"},
    ]})
    assert cli.main(["--input", path, "--start", "2025-01-01", "--end", "2025-06-30"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [r["url"] for r in out["results"]] == ["https://example.com/in"]
    assert out["results"][0]["date_source"] == "provided"
    assert "trace" not in out


def test_strict_trace_and_non_content(tmp_path, capsys, monkeypatch, fake_fetcher):
    fetcher = fake_fetcher()
    monkeypatch.setattr("datesieve.web.batch.make_fetcher", lambda cfg: fetcher)
    path = _write(tmp_path, [
        {"title": "Undated", "url": "https://example.com/undated"},
        {"title": "Privacy Policy", "url": "https://example.com/legal"},
    ])
    rc = cli.main(["-i", path, "--start", "2025-01-01", "--end", "2025-06-30", "--strict", "--trace", "--drop-non-content"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["results"] == []
    assert fetcher.urls == ["https://example.com/undated"]
    events = [e["event"] for e in out["trace"]]
    assert "dropped_undated" in events
    assert events[-1] == "batch_summary"


def test_config_overrides_from_flags():
    args = cli.build_parser().parse_args(
        ["--start", "2025-01-01", "--end", "2025-01-31", "--concurrency", "0", "--deadline", "3", "--timeout", "1.5"]
    )
    cfg = cli._config_from_args(args)
    assert cfg.concurrency == 1
    assert cfg.overall_deadline_s == 3.0
    assert cfg.request_timeout_s == 1.5


def test_bad_input_exits_with_2(tmp_path, capsys):
    missing = str(tmp_path / "nope.json")
    assert cli.main(["--input", missing, "--start", "2025-01-01", "--end", "2025-06-30"]) == 2

    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert cli.main(["--input", str(path), "--start", "2025-01-01", "--end", "2025-06-30"]) == 2

    good = _write(tmp_path, [])
    assert cli.main(["--input", good, "--start", "June 1", "--end", "2025-06-30"]) == 2
    assert "Error:" in capsys.readouterr().err
