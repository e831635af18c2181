import httpx
import pytest


def make_transport(responses: dict) -> httpx.MockTransport:
    """
    responses maps URL -> (status, headers) or -> an httpx exception class,
    which is raised for that URL as a network-level failure.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        spec = responses[str(request.url)]
        if isinstance(spec, type) and issubclass(spec, Exception):
            raise spec("simulated failure", request=request)
        status, headers = spec
        return httpx.Response(status, headers=headers)

    return httpx.MockTransport(handler)


@pytest.fixture
def scenario_responses():
    return {
        "https://example.com/a.js": (200, {"Content-Type": "application/javascript", "Content-Encoding": "gzip"}),
        "https://example.com/b.png": (200, {"Content-Type": "image/png"}),
        "https://example.com/c.css": (200, {"Content-Type": "text/css"}),
        "https://example.com/d.html": (404, {"Content-Type": "text/html"}),
    }


@pytest.fixture
def transport_for():
    return make_transport
