# app.py (Streamlit frontend)
import asyncio
import json
import logging
import streamlit as st
import pandas as pd

import config
from analyzer import run_compression_analysis, generate_compression_report
from scraper import ResourceListingError
from Features.PieChartRender import render_pie_chart
from Features.CompressionPanel import build_panel

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT, datefmt=config.LOG_DATEFMT)

st.set_page_config(
    page_title="Compression Inspector",
    page_icon="🗜️",
    layout="wide"
)

st.title("🗜️ Compression Inspector")
st.caption("Checks whether a page's same-origin resources are served with Gzip or Brotli.")

col1, col2 = st.columns([3, 1])
with col1:
    url_to_analyze = st.text_input("Enter the URL to analyze", placeholder="https://example.com")
with col2:
    st.write("Advanced options")
    run_browser = st.checkbox("Use headless browser (Playwright)", value=True, help="Reads the page's resource timeline in Chromium. Unchecked, only resources referenced by the static HTML are checked.")
    export_json = st.checkbox("Show raw JSON download", value=True)

if 'panel' not in st.session_state:
    st.session_state.panel = None
    st.session_state.report = None

if st.button("Analyze Website", type="primary"):
    if not url_to_analyze:
        st.warning("Please enter a URL to analyze.")
    else:
        with st.spinner("Probing resources... This may take a moment."):
            try:
                compression_report = asyncio.run(run_compression_analysis(url_to_analyze, run_playwright=run_browser))
            except ResourceListingError as e:
                st.session_state.panel = None
                st.session_state.report = None
                st.error(f"Could not load the page: {e}")
            else:
                chart_png = render_pie_chart(compression_report.compressed_type_tally, config.CHART_SIZE)
                st.session_state.panel = build_panel(compression_report, chart_png)
                st.session_state.report = generate_compression_report(compression_report)

panel = st.session_state.panel
if panel is not None and panel.is_mounted:
    st.divider()
    with st.container(border=True):
        head, close = st.columns([6, 1])
        head.subheader(panel.title)
        if close.button("✖ Dismiss"):
            panel.dismiss()
            st.rerun()
        st.metric(label="Compressed", value=panel.ratio_text,
                  help=f"{panel.compressed_count} of {panel.compressible_count} compressible resources")
        st.image(panel.chart_png, width=config.CHART_SIZE)
        st.caption(panel.disclaimer)

report = st.session_state.report
if report:
    st.subheader("Resources")
    if report["resources"]:
        df = pd.DataFrame(report["resources"])
        st.dataframe(df[["url", "status", "analysis"]], use_container_width=True)
    else:
        st.info("No same-origin resources answered the probes.")

    if report["error_urls"]:
        st.warning(f"Resources returning errors: {len(report['error_urls'])}")
        for u in report["error_urls"][:10]:
            st.write(u)

    if export_json:
        st.download_button("Download full report JSON", data=json.dumps(report, indent=2), file_name="compression_report.json", mime="application/json")
