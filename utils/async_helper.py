import asyncio
import logging
import httpx

from models import ProbeResult, UNKNOWN_CONTENT_TYPE, NO_CONTENT_ENCODING


def normalize_content_type(value: str | None) -> str:
    # "text/css; charset=utf-8" -> "text/css"
    if not value:
        return UNKNOWN_CONTENT_TYPE
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type or UNKNOWN_CONTENT_TYPE


def normalize_content_encoding(value: str | None) -> str:
    if not value:
        return NO_CONTENT_ENCODING
    return value


def build_probe_result(url: str, response: httpx.Response) -> ProbeResult:
    status = response.status_code
    return ProbeResult(
        url=url,
        outcome="http_error" if status >= 400 else "success",
        status=status,
        content_type=normalize_content_type(response.headers.get("Content-Type")),
        content_encoding=normalize_content_encoding(response.headers.get("Content-Encoding")),
    )


async def probe_resource_headers_async(urls_to_check: list, timeout: int = 8, transport: httpx.AsyncBaseTransport | None = None, verify: bool = False) -> list[ProbeResult]:
    """
    Performs an async HEAD request on each URL and returns one ProbeResult per URL.

    All probes are started together and every one is awaited, failed or not.
    A request that raises (DNS, refused connection, timeout...) becomes a
    `network_failure` result instead of aborting the batch.

    Certificates are not verified by default, matching the browser context
    that listed the resources (`ignore_https_errors=True`).
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, verify=verify, transport=transport) as client:

        async def fetch_headers(url):
            try:
                response = await client.head(url)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logging.debug("Probe failed for %s: %s", url, e)
                return ProbeResult(url=url, outcome="network_failure", error=str(e))
            return build_probe_result(url, response)

        tasks = [fetch_headers(url) for url in urls_to_check]
        results = await asyncio.gather(*tasks)

    return list(results)
