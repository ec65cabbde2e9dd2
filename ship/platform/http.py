"""HTTP client abstraction for outbound API calls.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import base64
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ship.core.result import Err, Ok, Result

__all__ = [
    "BasicAuth",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message (response body for HTTP errors)
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: str


@dataclass(frozen=True, slots=True)
class BasicAuth:
    username: str
    password: str = field(repr=False)

    def header(self) -> str:
        raw = f"{self.username}:{self.password}".encode("utf-8")
        return "Basic " + base64.b64encode(raw).decode("ascii")


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Any status >= 400 is reported as ``Err(HttpError)``.
    """

    def post_json(
        self,
        url: str,
        payload: dict[str, object],
        *,
        auth: BasicAuth | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """POST ``payload`` as JSON.

        Args:
            url: Target URL
            payload: JSON-serializable body
            auth: Optional HTTP Basic credentials

        Returns:
            Ok with the response, or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib (system certificates, timeouts)."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "ship/0.3.0") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def post_json(
        self,
        url: str,
        payload: dict[str, object],
        *,
        auth: BasicAuth | None = None,
    ) -> Result[HttpResponse, HttpError]:
        headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
        }
        if auth is not None:
            headers["Authorization"] = auth.header()

        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            return Err(HttpError(url=url, status=0, message=f"preparing request body: {e}"))

        try:
            req = urllib.request.Request(url, data=body, headers=headers, method="POST")
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                text = response.read().decode("utf-8", errors="replace")
                return Ok(HttpResponse(status=response.status, body=text))
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace").strip()
            return Err(HttpError(url=url, status=e.code, message=detail or str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_response("https://example.com/api/deploy", 200)
        client.post_json("https://example.com/api/deploy", {"v": "1"})
        assert client.requests[0].payload == {"v": "1"}
    """

    @dataclass(frozen=True, slots=True)
    class Request:
        url: str
        payload: dict[str, object]
        auth: BasicAuth | None

    def __init__(self) -> None:
        self._responses: dict[str, HttpResponse | HttpError] = {}
        self.requests: list[MockHttpClient.Request] = []

    def set_response(self, url: str, status: int, body: str = "") -> None:
        self._responses[url] = HttpResponse(status=status, body=body)

    def set_error(self, url: str, error: HttpError) -> None:
        self._responses[url] = error

    def post_json(
        self,
        url: str,
        payload: dict[str, object],
        *,
        auth: BasicAuth | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.requests.append(MockHttpClient.Request(url=url, payload=payload, auth=auth))

        response = self._responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        if response.status >= 400:
            return Err(HttpError(url=url, status=response.status, message=response.body))
        return Ok(response)
