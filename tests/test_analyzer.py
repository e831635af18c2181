import asyncio
import json
import random

import pytest

import analyzer
from analyzer import (
    aggregate_probe_results, compute_compression_ratio, generate_compression_report,
    export_to_json, export_to_markdown, format_table, run_compression_analysis,
)
from models import ProbeResult
from utils.async_helper import probe_resource_headers_async


def probe(url, outcome="success", content_type="unknown", encoding="none", status=200):
    if outcome == "network_failure":
        return ProbeResult(url=url, outcome=outcome, error="boom")
    return ProbeResult(url=url, outcome=outcome, status=status, content_type=content_type, content_encoding=encoding)


@pytest.fixture
def scenario_results():
    return [
        probe("/a.js", content_type="application/javascript", encoding="gzip"),
        probe("/b.png", content_type="image/png"),
        probe("/c.css", content_type="text/css"),
        probe("/d.html", outcome="http_error", content_type="text/html", status=404),
    ]


def check_invariants(report, input_count):
    assert len(report.non_compressible) + len(report.compressed) + len(report.compression_missed) == len(report.successes)
    assert len(report.compressible) == len(report.compressed) + len(report.compression_missed)
    assert len(report.successes) + len(report.errors) + report.dropped == input_count
    assert sum(report.compressed_type_tally.values()) == len(report.compressed)
    assert 0 <= report.ratio <= 100
    assert (report.ratio == 0) == (len(report.compressed) == 0)


def test_scenarios(scenario_results):
    report = aggregate_probe_results(scenario_results, page_url="https://example.com/")

    assert report.compressed == ["/a.js"]
    assert report.compressed_type_tally == {"application/javascript": 1}
    assert report.non_compressible == ["/b.png"]
    assert report.compression_missed == ["/c.css"]
    assert report.errors == ["/d.html"]
    assert report.compressible == ["/a.js", "/c.css"]
    assert report.ratio == 50.0
    check_invariants(report, len(scenario_results))


def test_network_failures_are_dropped(scenario_results):
    results = scenario_results + [probe("/e.js", outcome="network_failure")]
    report = aggregate_probe_results(results)

    assert report.dropped == 1
    assert "/e.js" not in report.successes + report.errors
    assert report.ratio == 50.0
    check_invariants(report, len(results))


def test_empty_input():
    report = aggregate_probe_results([])
    assert report.ratio == 0
    assert report.compressed_type_tally == {}
    check_invariants(report, 0)


def test_tally_counts_per_type_in_first_seen_order():
    results = [
        probe("/1.css", content_type="text/css", encoding="br"),
        probe("/1.js", content_type="application/javascript", encoding="gzip"),
        probe("/2.css", content_type="text/css", encoding="gzip"),
        probe("/3.css", content_type="text/css"),
    ]
    report = aggregate_probe_results(results)
    assert list(report.compressed_type_tally.items()) == [("text/css", 2), ("application/javascript", 1)]
    assert report.ratio == 75.0


def test_random_inputs_keep_invariants():
    rng = random.Random(7)
    types = ["text/css", "text/html", "image/png", "application/json", "unknown", "font/woff2"]
    encodings = ["none", "gzip", "br", "deflate"]
    outcomes = ["success", "success", "success", "http_error", "network_failure"]
    for _ in range(50):
        results = [
            probe(f"/r{i}", outcome=rng.choice(outcomes), content_type=rng.choice(types),
                  encoding=rng.choice(encodings), status=rng.choice([200, 304, 404, 500]))
            for i in range(rng.randint(0, 20))
        ]
        check_invariants(aggregate_probe_results(results), len(results))


def test_ratio_rounding_and_zero_guard():
    assert compute_compression_ratio(0, 0) == 0
    assert compute_compression_ratio(1, 3) == 33.33
    assert compute_compression_ratio(2, 3) == 66.67
    assert compute_compression_ratio(4, 4) == 100.0


def test_pipeline_is_idempotent(monkeypatch, transport_for, scenario_responses):
    transport = transport_for(scenario_responses)

    monkeypatch.setattr(analyzer, "list_resource_urls",
                        lambda url, run_playwright=True: ("https://example.com/", list(scenario_responses)))

    async def probe_with_mock(urls, timeout=8):
        return await probe_resource_headers_async(urls, timeout=timeout, transport=transport)

    monkeypatch.setattr(analyzer, "probe_resource_headers_async", probe_with_mock)

    first = asyncio.run(run_compression_analysis("https://example.com/"))
    second = asyncio.run(run_compression_analysis("https://example.com/"))

    buckets = ["errors", "successes", "compressible", "non_compressible", "compressed", "compression_missed"]
    for bucket in buckets:
        assert sorted(getattr(first, bucket)) == sorted(getattr(second, bucket))
    assert first.compressed_type_tally == second.compressed_type_tally
    assert first.ratio == second.ratio == 50.0
    assert first.page_url == "https://example.com/"


def test_generate_compression_report(scenario_results):
    final = generate_compression_report(aggregate_probe_results(scenario_results, page_url="https://example.com/"))

    assert final["compression_ratio"] == 50.0
    assert final["summary"]["compressed"] == 1
    assert final["summary"]["errors"] == 1
    assert final["detailed_feature_analysis"]["text_compression"]["status"] == "fail"
    assert final["detailed_feature_analysis"]["resource_errors"]["status"] == "fail"
    assert final["compression_missed_urls"] == ["/c.css"]
    assert [r["url"] for r in final["resources"]] == ["/a.js", "/b.png", "/c.css"]
    json.dumps(final)


def test_generate_report_without_compressible_resources():
    final = generate_compression_report(aggregate_probe_results([probe("/b.png", content_type="image/png")]))
    assert final["detailed_feature_analysis"]["text_compression"]["status"] == "warning"
    assert final["detailed_feature_analysis"]["resource_errors"]["status"] == "pass"


def test_exports(tmp_path, scenario_results):
    final = generate_compression_report(aggregate_probe_results(scenario_results, page_url="https://example.com/"))

    json_path = tmp_path / "report.json"
    export_to_json(final, str(json_path))
    assert json.loads(json_path.read_text(encoding="utf-8"))["compression_ratio"] == 50.0

    md_path = tmp_path / "report.md"
    export_to_markdown(final, str(md_path), chart_path="chart.png")
    text = md_path.read_text(encoding="utf-8")
    assert "# Compression Report for https://example.com/" in text
    assert "![Compressed Resources](chart.png)" in text
    assert "application/javascript" in text
    assert "/c.css" in text


def test_format_table():
    assert format_table(["A"], []) == ""
    table = format_table(["Type", "N"], [["text/css", 2]])
    assert table.splitlines()[0] == "| Type     | N |"
