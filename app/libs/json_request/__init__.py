"""One-shot JSON-over-HTTP requests."""

from .exceptions import InvalidURLError, JsonRequestError, RequestTimeoutError
from .executor import PendingRequest, RequestState, make_request, request_json
from .models import ErrorResult, ErrorType, RequestConfig, ResponseResult
from .transport import TRANSPORTS, parse_url
from .types import Invocable, OnError, OnSuccess, TransportFactory

__all__ = [
    "make_request",
    "request_json",
    "RequestConfig",
    "ResponseResult",
    "ErrorResult",
    "ErrorType",
    "PendingRequest",
    "RequestState",
    "InvalidURLError",
    "JsonRequestError",
    "RequestTimeoutError",
    "TRANSPORTS",
    "parse_url",
    "Invocable",
    "OnSuccess",
    "OnError",
    "TransportFactory",
]
