import logging
import asyncio
import sys
if sys.platform == "win32":
    try:
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    except Exception:
        pass
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel, HttpUrl
import uvicorn

import config
from analyzer import run_compression_analysis, generate_compression_report
from scraper import ResourceListingError
from models import CompressionReport
from Features.PieChartRender import render_pie_chart
from Features.CompressionPanel import build_panel, render_panel_html

logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt=config.LOG_DATEFMT
)

app = FastAPI(title="Compression Inspector API")


class URLRequest(BaseModel):
    url: HttpUrl
    run_playwright: bool = True
    probe_timeout: int | None = None


async def _analyze(req: URLRequest) -> CompressionReport:
    try:
        logging.info(f"Analysis started for: {req.url}")
        report = await run_compression_analysis(
            str(req.url),
            run_playwright=req.run_playwright,
            probe_timeout=req.probe_timeout or config.PROBE_TIMEOUT,
        )
        logging.info(f"✨ Analysis complete for {req.url}!")
        return report
    except ResourceListingError as e:
        logging.error(f"Could not list resources for {req.url}: {e}")
        raise HTTPException(status_code=502, detail=f"Could not load page: {e}")
    except Exception as e:
        logging.exception("An internal error occurred during analysis.")
        raise HTTPException(status_code=500, detail=f"An internal error occurred: {e}")


@app.post("/analyze")
async def analyze(req: URLRequest):
    report = await _analyze(req)
    return generate_compression_report(report)


@app.post("/chart")
async def chart(req: URLRequest):
    report = await _analyze(req)
    png = await run_in_threadpool(render_pie_chart, report.compressed_type_tally, config.CHART_SIZE)
    return Response(content=png, media_type="image/png")


@app.post("/panel", response_class=HTMLResponse)
async def panel(req: URLRequest):
    report = await _analyze(req)
    png = await run_in_threadpool(render_pie_chart, report.compressed_type_tally, config.CHART_SIZE)
    return HTMLResponse(render_panel_html(build_panel(report, png)))


@app.get("/")
def root():
    return {"message": "Compression Inspector API. Use POST /analyze, /chart or /panel with a URL."}

#directly running the main.py file
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
