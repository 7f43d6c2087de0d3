from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ErrorResult


class InvalidURLError(ValueError):
    """Raised when a request is built for a URL that cannot be sent."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Invalid URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class RequestTimeoutError(TimeoutError):
    """Cause attached to a TimeoutError outcome."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__("Request timed out")
        self.timeout_ms = timeout_ms


class JsonRequestError(Exception):
    """Raised by ``request_json`` when the request ends in an error outcome."""

    def __init__(self, result: "ErrorResult") -> None:
        super().__init__(f"{result.type}: {result.error}")
        self.result = result

    @property
    def type(self) -> str:
        return self.result.type
