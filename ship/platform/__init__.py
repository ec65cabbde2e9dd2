"""Platform abstraction layer (subprocesses, HTTP)."""

from .http import (
    BasicAuth,
    HttpClient,
    HttpError,
    HttpResponse,
    MockHttpClient,
    RealHttpClient,
)
from .process import (
    ProcessError,
    run,
)

__all__ = [
    # http
    "BasicAuth",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    # process
    "ProcessError",
    "run",
]
