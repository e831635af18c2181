from typing import Literal
from pydantic import BaseModel, Field

UNKNOWN_CONTENT_TYPE = "unknown"
NO_CONTENT_ENCODING = "none"


class ProbeResult(BaseModel):
    """Outcome of a single header-only probe.

    `network_failure` results carry no status and hold the exception text in `error`.
    """
    url: str
    outcome: Literal["success", "http_error", "network_failure"]
    status: int | None = None
    content_type: str = UNKNOWN_CONTENT_TYPE
    content_encoding: str = NO_CONTENT_ENCODING
    error: str | None = None


class CompressionReport(BaseModel):
    page_url: str = ""
    errors: list[str] = Field(default_factory=list)
    successes: list[str] = Field(default_factory=list)
    compressible: list[str] = Field(default_factory=list)
    non_compressible: list[str] = Field(default_factory=list)
    compressed: list[str] = Field(default_factory=list)
    compression_missed: list[str] = Field(default_factory=list)
    # content type -> number of compressed resources, in first-seen order
    compressed_type_tally: dict[str, int] = Field(default_factory=dict)
    ratio: float = 0
    dropped: int = 0
    results: list[ProbeResult] = Field(default_factory=list)
