import json
import sys
import os
import asyncio
import logging
from collections import defaultdict
from urllib.parse import urlparse

import config
from models import CompressionReport, ProbeResult
from scraper import list_resource_urls, ResourceListingError
from utils.async_helper import probe_resource_headers_async
from Features.CompressionTest import (
    classify_probe, resource_compression_test, NON_COMPRESSIBLE, COMPRESSED, COMPRESSION_MISSED,
)
from Features.PieChartRender import save_pie_chart

FEATURE_ANALYSIS_MAP = {
    "text_compression": {
        "feature_name": "Text Compression", "category": "Performance",
        "description": "Checks whether same-origin text-based resources (HTML, CSS, JavaScript, JSON, SVG...) are served with Gzip or Brotli content encoding.",
        "pros": "Compressed text resources typically shrink by 60-80%, cutting transfer time and bandwidth.",
        "pass_message": "All compressible same-origin resources are served compressed.",
        "fail_messages": {
            "compression_missed": "Some compressible resources were served without Gzip or Brotli encoding.",
            "no_compressible_resources": "No compressible same-origin resources were found on the page."
        },
        "recommendation": "Enable Gzip or Brotli on the web server or CDN for text-based content types."
    },
    "resource_errors": {
        "feature_name": "Resource Errors", "category": "Technical",
        "description": "Same-origin resources that answered with an HTTP error status (4xx/5xx).",
        "pros": "Broken resources waste requests and can break rendering.",
        "pass_message": "No same-origin resource returned an error status.",
        "fail_messages": {"resource_errors_found": "Some same-origin resources returned an HTTP error status."},
        "recommendation": "Fix or remove references to resources that return errors."
    },
}


def compute_compression_ratio(compressed_count: int, compressible_count: int) -> float:
    if compressible_count == 0:
        return 0
    return round(compressed_count / compressible_count * 100, 2)


def aggregate_probe_results(results: list[ProbeResult], page_url: str = "") -> CompressionReport:
    """
    Buckets probe results in one pass.

    Network failures land in no bucket; only their number is kept. HTTP
    errors are recorded but never classified. Every success lands in exactly
    one of non_compressible / compressed / compression_missed.
    """
    report = CompressionReport(page_url=page_url, results=list(results))

    for result in results:
        if result.outcome == "network_failure":
            report.dropped += 1
            continue
        if result.outcome == "http_error":
            report.errors.append(result.url)
            continue

        report.successes.append(result.url)
        verdict = classify_probe(result)
        if verdict == NON_COMPRESSIBLE:
            report.non_compressible.append(result.url)
            continue

        report.compressible.append(result.url)
        if verdict == COMPRESSED:
            report.compressed.append(result.url)
            tally = report.compressed_type_tally
            tally[result.content_type] = tally.get(result.content_type, 0) + 1
        else:
            report.compression_missed.append(result.url)

    report.ratio = compute_compression_ratio(len(report.compressed), len(report.compressible))

    if report.dropped:
        logging.warning(f"{report.dropped} probe(s) failed at the network level and were left out of the results.")
    return report


async def run_compression_analysis(url: str, run_playwright: bool = True, probe_timeout: int = config.PROBE_TIMEOUT) -> CompressionReport:
    # listing the page blocks (subprocess / requests), keep it off the event loop
    page_url, resource_urls = await asyncio.to_thread(list_resource_urls, url, run_playwright)

    logging.info(f"Probing {len(resource_urls)} resources for {page_url}")
    results = await probe_resource_headers_async(resource_urls, timeout=probe_timeout)

    report = aggregate_probe_results(results, page_url=page_url)
    logging.info(f"Compression ratio for {page_url}: {report.ratio}% ({len(report.compressed)}/{len(report.compressible)})")
    return report


def generate_compression_report(report: CompressionReport) -> dict:
    text_info = FEATURE_ANALYSIS_MAP["text_compression"]
    if not report.compressible:
        text_status, text_analysis = "warning", text_info["fail_messages"]["no_compressible_resources"]
    elif report.compression_missed:
        text_status, text_analysis = "fail", text_info["fail_messages"]["compression_missed"]
    else:
        text_status, text_analysis = "pass", text_info["pass_message"]

    error_info = FEATURE_ANALYSIS_MAP["resource_errors"]
    if report.errors:
        error_status, error_analysis = "fail", error_info["fail_messages"]["resource_errors_found"]
    else:
        error_status, error_analysis = "pass", error_info["pass_message"]

    findings = [
        resource_compression_test(result)
        for result in report.results if result.outcome == "success"
    ]

    return {
        "url": report.page_url,
        "compression_ratio": report.ratio,
        "summary": {
            "probed": len(report.results),
            "successes": len(report.successes),
            "errors": len(report.errors),
            "dropped": report.dropped,
            "compressible": len(report.compressible),
            "non_compressible": len(report.non_compressible),
            "compressed": len(report.compressed),
            "compression_missed": len(report.compression_missed),
        },
        "compressed_type_tally": dict(report.compressed_type_tally),
        "detailed_feature_analysis": {
            "text_compression": {**text_info, "status": text_status, "analysis": text_analysis},
            "resource_errors": {**error_info, "status": error_status, "analysis": error_analysis},
        },
        "compression_missed_urls": list(report.compression_missed),
        "error_urls": list(report.errors),
        "resources": findings,
    }


def export_to_json(report: dict, filename: str):
    """Exports the report dictionary to a JSON file."""
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=4)
    print(f" Full JSON report exported to {filename}")


def format_table(header, rows):
    """ Formats data into a Markdown table. """
    if not rows:
        return ""

    column_widths = [len(h) for h in header]
    for row in rows:
        for i, cell in enumerate(row):
            column_widths[i] = max(column_widths[i], len(str(cell)))

    md_table = "| " + " | ".join(header[i].ljust(column_widths[i]) for i in range(len(header))) + " |\n"
    md_table += "|-" + "-|-".join("-" * column_widths[i] for i in range(len(header))) + "-|\n"
    for row in rows:
        md_table += "| " + " | ".join(str(row[i]).ljust(column_widths[i]) for i in range(len(row))) + " |\n"

    return md_table + "\n"


def export_to_markdown(report: dict, filename: str, chart_path: str | None = None):
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(f"# Compression Report for {report['url']}\n\n")
        f.write(f"##  Compression Ratio: {report['compression_ratio']}%\n\n")

        if chart_path:
            f.write(f"###  Compressed Resources by Type\n\n![Compressed Resources]({chart_path})\n\n")

        summary = report["summary"]
        f.write("###  Summary\n\n")
        f.write(format_table(["Bucket", "Resources"], [[k.replace("_", " ").title(), v] for k, v in summary.items()]))

        tally_rows = [[c_type, count] for c_type, count in report["compressed_type_tally"].items()]
        if tally_rows:
            f.write("###  Compressed by Content Type\n\n")
            f.write(format_table(["Content Type", "Compressed"], tally_rows))

        resources_by_status = defaultdict(list)
        for item in report["resources"]:
            resources_by_status[item["status"]].append(item)
        if failed := resources_by_status.get("fail"):
            f.write("###  Missed Compression\n\n")
            f.write(format_table(["URL", "Analysis"], [[item["url"], item["analysis"]] for item in failed]))

        f.write("##  Detailed Feature Analysis\n\n")
        for value in report["detailed_feature_analysis"].values():
            f.write(f"### {value['feature_name']}\n\n")
            f.write(f"- **Category:** {value['category']}\n")
            f.write(f"- **Status:** {value['status'].title()}\n")
            f.write(f"- **Analysis:** {value['analysis']}\n")
            if value['status'] != 'pass':
                f.write(f"- **Recommendation:** {value['recommendation']}\n")
            f.write("\n---\n\n")
    print(f" Markdown report exported to {filename}")


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT, datefmt=config.LOG_DATEFMT)
    args = sys.argv[1:]

    if not args or not args[0].startswith("http"):
        print(" Error: Please provide a valid URL as the first argument.")
        sys.exit(1)

    test_url = args.pop(0)
    use_playwright = "--static" not in args

    print(f" Starting compression analysis for: {test_url}")
    if not use_playwright: print(" Static HTML mode enabled.")

    try:
        compression_report = asyncio.run(run_compression_analysis(test_url, run_playwright=use_playwright))
    except ResourceListingError as e:
        print(f" Could not list resources for {test_url}: {e}")
        sys.exit(1)

    final_report = generate_compression_report(compression_report)

    domain_name = urlparse(test_url).netloc.replace(".", "_")
    os.makedirs(config.REPORTS_DIR, exist_ok=True)
    json_filename = os.path.join(config.REPORTS_DIR, f"{domain_name}_compression_report.json")
    md_filename = os.path.join(config.REPORTS_DIR, f"{domain_name}_compression_report.md")
    chart_filename = os.path.join(config.REPORTS_DIR, f"{domain_name}_compression_chart.png")

    save_pie_chart(compression_report.compressed_type_tally, chart_filename, size=config.CHART_SIZE)
    export_to_json(final_report, json_filename)
    export_to_markdown(final_report, md_filename, chart_path=os.path.basename(chart_filename))

    print("\n---  Report Summary ---")
    print(f"Compression Ratio: {final_report['compression_ratio']}%")
    print("Buckets:", final_report["summary"])
    print(f"\n Analysis complete! Full reports saved as {json_filename} and {md_filename}")
