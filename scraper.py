import json
import sys
import os
import random
import logging
import subprocess
from urllib.parse import urljoin
import httpx
from bs4 import BeautifulSoup
from requests import Session, exceptions

from config import USER_AGENTS, NAVIGATION_TIMEOUT


class ResourceListingError(Exception):
    """The page could not be loaded, so there are no resources to list."""


#combining playwright asyncio with the analysis event loop causes issues on windows
#to avoid this we run playwright in a separate python process using subprocess
def collect_browser_resources_with_playwright(url: str, timeout: int = 30) -> dict:
    worker = os.path.join(os.path.dirname(os.path.abspath(__file__)), "playwright_worker.py")
    cmd = [sys.executable, "-u", worker, url, str(timeout)]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout + 15)
    except subprocess.TimeoutExpired:
        logging.error("Playwright worker timed out.")
        raise ResourceListingError(f"Browser timed out loading {url}")

    stdout = proc.stdout.strip()
    if not stdout:
        logging.error("Playwright worker returned empty output. Stderr: %s", proc.stderr)
        raise ResourceListingError("Browser worker returned no output")

    try:
        data = json.loads(stdout.splitlines()[-1])
    except json.JSONDecodeError as e:
        logging.exception("Failed to parse Playwright worker output: %s", e)
        raise ResourceListingError("Browser worker returned malformed output") from e

    if data.get("error"):
        logging.error("Playwright worker error: %s", data.get("error"))
        raise ResourceListingError(data["error"])

    return data


def extract_resource_urls_from_html(url: str, timeout: int = 15) -> tuple[str, list]:
    """
    Static fallback: lists the images, scripts and stylesheets referenced by the HTML.
    Nothing rendered by JavaScript is seen here.
    """
    with Session() as session:
        session.headers.update({
            'User-Agent': random.choice(USER_AGENTS),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        })
        try:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
        except exceptions.RequestException as e:
            logging.error(f"Error fetching {url}: {e}")
            raise ResourceListingError(f"Could not fetch {url}: {e}") from e

    page_url = response.url
    soup = BeautifulSoup(response.text, "lxml")

    resource_urls = []
    for tag in soup.find_all(["img", "script"], src=True):
        if src := tag.get("src"):
            if not src.startswith("data:"): resource_urls.append(urljoin(page_url, src))
    for tag in soup.find_all("link", rel="stylesheet"):
        if href := tag.get("href"): resource_urls.append(urljoin(page_url, href))

    return page_url, resource_urls


def origin_host(url: str) -> tuple | None:
    # httpx lowercases the host and drops default ports: EXAMPLE.com:443 -> (example.com, None)
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return None
    return parsed.host, parsed.port


def filter_same_origin(urls: list, page_url: str) -> list:
    page_host = origin_host(page_url)
    same_origin = []
    for u in urls:
        host = origin_host(u)
        if host is None:
            logging.debug(f"Skipping unparseable resource URL: {u}")
        elif host == page_host:
            same_origin.append(u)
    return same_origin


def list_resource_urls(url: str, run_playwright: bool = True, timeout: int = NAVIGATION_TIMEOUT) -> tuple[str, list]:
    """
    Returns (page_url, same-origin resource URLs) for the page at `url`.

    With Playwright the URLs come from the page's resource-timing buffer;
    otherwise from the static HTML.
    """
    if run_playwright:
        logging.info("... Running headless browser to read the resource timeline ...")
        data = collect_browser_resources_with_playwright(url, timeout=timeout)
        page_url = data.get("page_url") or url
        resources = data.get("resources") or []
    else:
        page_url, resources = extract_resource_urls_from_html(url, timeout=timeout)

    same_origin = filter_same_origin(resources, page_url)
    logging.info(f"Found {len(resources)} resources, {len(same_origin)} same-origin.")
    return page_url, same_origin
