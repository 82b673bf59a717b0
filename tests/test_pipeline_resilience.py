from __future__ import annotations

import csv
from pathlib import Path

import requests

from grokhtml.config import AppConfig, ExtractionJob, Settings
from grokhtml.pipeline import ExtractionPipeline, export_csv

PAGE = b"<table><tr><td>foo = baz</td></tr></table>"


def test_pipeline_continues_after_fetch_error(monkeypatch, tmp_path):
    page = tmp_path / "page.html"
    page.write_bytes(PAGE)
    config = AppConfig(
        jobs=[
            ExtractionJob(name="Problem Site", uri="https://example.com", expression='td -> text:"(.*)"'),
            ExtractionJob(name="Local Page", uri=str(page), expression='td -> text:"foo = (.*)"', template="\\1"),
        ],
    )

    def failing_get(*args, **kwargs):  # noqa: ANN001
        raise requests.RequestException("boom")

    monkeypatch.setattr("grokhtml.sources.requests.get", failing_get)

    results = ExtractionPipeline(config).run()

    assert [result.ok for result in results] == [False, True]
    assert "boom" in results[0].error
    assert results[1].output == "baz"


def test_pipeline_records_parse_and_match_errors():
    def fetcher(uri, settings):  # noqa: ANN001
        return PAGE

    config = AppConfig(
        jobs=[
            ExtractionJob(name="broken", uri="mem://a", expression='table<border="0" foo=>'),
            ExtractionJob(name="unmatched", uri="mem://b", expression='td -> text:"bar = (.*)"'),
            ExtractionJob(name="range", uri="mem://c", expression='td -> text:"foo = (.*)"', template="\\9"),
            ExtractionJob(name="good", uri="mem://d", expression='TD -> text:"FOO = (.*)"', template="foo is \\1"),
        ],
        settings=Settings(ignore_case=True),
    )

    results = ExtractionPipeline(config, fetcher=fetcher).run()

    assert [result.name for result in results if result.ok] == ["good"]
    assert results[-1].output == "foo is baz"
    assert "offset 21" in results[0].error
    assert results[1].error == "No match found"
    assert results[2].error.startswith("Template references \\9")


def test_export_csv_writes_all_results(tmp_path: Path):
    def fetcher(uri, settings):  # noqa: ANN001
        return PAGE

    config = AppConfig(
        jobs=[
            ExtractionJob(name="one", uri="mem://1", expression='td -> text:"foo = (.*)"', template="\\1"),
            ExtractionJob(name="two", uri="mem://2", expression='td -> text:"nope"'),
        ]
    )
    pipeline = ExtractionPipeline(config, fetcher=fetcher)
    results = pipeline.run()
    pipeline.render(results)

    destination = tmp_path / "out" / "results.csv"
    count = export_csv(results, destination)

    assert count == 2
    with destination.open(encoding="utf-8-sig", newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert [row["name"] for row in rows] == ["one", "two"]
    assert rows[0]["output"] == "baz"
    assert rows[1]["error"] == "No match found"
    assert rows[0]["extracted_at"]
