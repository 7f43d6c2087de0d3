import ssl
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import StrEnum
from typing import Any

import httpx

from configs import app_config


def _default_timeout() -> int:
    return app_config.HTTP_REQUEST_DEFAULT_TIMEOUT_MS


def _default_verify() -> bool:
    return app_config.HTTP_REQUEST_SSL_VERIFY


@dataclass(frozen=True)
class RequestConfig:
    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    timeout: int = field(default_factory=_default_timeout)
    verify: bool | str | ssl.SSLContext = field(default_factory=_default_verify)
    raise_for_status: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.url, str):
            raise TypeError(f"url must be a string, got {type(self.url).__name__}")
        if not self.method:
            raise ValueError("method must not be empty")
        # bool is an int subclass
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError(f"timeout must be a positive number of milliseconds, got {self.timeout!r}")
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", dict(self.headers))

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "RequestConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(params) - known
        if unknown:
            raise TypeError(f"Unknown request parameters: {', '.join(sorted(unknown))}")
        return cls(**params)

    def with_headers(self, **headers: str) -> "RequestConfig":
        return replace(self, headers={**self.headers, **headers})

    def with_timeout(self, timeout: int) -> "RequestConfig":
        return replace(self, timeout=timeout)

    def with_body(self, body: Any) -> "RequestConfig":
        return replace(self, body=body)


@dataclass(frozen=True)
class ResponseResult:
    status: int
    headers: dict[str, str | list[str]]
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ErrorType(StrEnum):
    PARSE_ERROR = "ParseError"
    REQUEST_ERROR = "RequestError"
    TIMEOUT_ERROR = "TimeoutError"


@dataclass(frozen=True)
class ErrorResult:
    type: ErrorType
    error: BaseException
    raw_response: str | None = None


def collect_headers(headers: httpx.Headers) -> dict[str, str | list[str]]:
    """Flatten response headers into a plain dict keyed by lower-case name.

    Repeated ``set-cookie`` headers are kept as a list, any other repeated
    header is joined with ``", "``.
    """
    collected: dict[str, str | list[str]] = {}
    for name, value in headers.multi_items():
        name = name.lower()
        if name == "set-cookie":
            collected.setdefault(name, []).append(value)  # type: ignore[union-attr]
        elif name in collected:
            collected[name] = f"{collected[name]}, {value}"
        else:
            collected[name] = value
    return collected
