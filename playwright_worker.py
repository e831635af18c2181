import sys
import json
import asyncio
import random

if sys.platform == "win32":
    try:
        # Use ProactorEventLoop instead of SelectorEventLoop
        loop = asyncio.ProactorEventLoop()
        asyncio.set_event_loop(loop)
    except Exception:
        pass

try:
    from playwright.sync_api import sync_playwright, TimeoutError as PlaywrightTimeoutError
except Exception as e:
    print(json.dumps({"error": f"playwright_import_failed: {e}"}))
    sys.exit(1)

from config import USER_AGENTS

RESOURCE_TIMING_SCRIPT = """() => {
    const perf = window.performance || {};
    const entries = (perf.getEntriesByType && perf.getEntriesByType('resource')) || [];
    return entries.map(e => e.name);
}"""


def run_worker(url: str, timeout: int = 30):
    out = {"page_url": url, "resources": [], "error": None}

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=True,
                args=['--no-sandbox', '--disable-dev-shm-usage']
            )
            context = browser.new_context(
                user_agent=random.choice(USER_AGENTS),
                viewport={'width': 1920, 'height': 1080},
                ignore_https_errors=True
            )
            page = context.new_page()

            try:
                page.goto(url, wait_until="load", timeout=timeout * 1000)
            except Exception as e:
                browser.close()
                out["error"] = f"navigation_failed: {e}"
                print(json.dumps(out), flush=True)
                return

            # late lazy-loaded resources are still picked up if the network settles
            try:
                page.wait_for_load_state("networkidle", timeout=5000)
            except PlaywrightTimeoutError:
                pass

            out["page_url"] = page.url
            out["resources"] = page.evaluate(RESOURCE_TIMING_SCRIPT) or []
            browser.close()
            print(json.dumps(out), flush=True)

    except Exception as e:
        import traceback
        tb_str = traceback.format_exc()
        print(json.dumps({"error": f"worker_exception: {e}\n{tb_str}"}), flush=True)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(json.dumps({"error": "missing_url"}))
        sys.exit(1)
    url = sys.argv[1]
    timeout = int(sys.argv[2]) if len(sys.argv) > 2 else 30
    run_worker(url, timeout)
