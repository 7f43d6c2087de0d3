import asyncio
import codecs
import enum
import json
import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from extensions.ext_logging import trace_id_generator, trace_id_var

from .exceptions import JsonRequestError, RequestTimeoutError
from .models import ErrorResult, ErrorType, RequestConfig, ResponseResult, collect_headers
from .transport import parse_url, transport_for
from .types import Invocable, OnError, OnSuccess

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}

# The event loop only keeps weak references to tasks.
_in_flight: set[asyncio.Task] = set()


def serialize_body(body: Any) -> bytes:
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def build_headers(headers: Mapping[str, str], content_length: int) -> dict[str, str]:
    """Merge caller headers over the JSON defaults and set ``Content-Length``.

    Header names are compared case-insensitively, the caller's spelling wins.
    ``content_length`` is the byte length of the encoded body.
    """
    merged = dict(DEFAULT_HEADERS)
    for name, value in headers.items():
        _set_header(merged, name, value)
    _set_header(merged, "Content-Length", str(content_length))
    return merged


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant {name!r}")


def parse_body(text: str) -> Any:
    """Parse a response body, ``{}`` when it is empty.

    Raises ``ValueError`` (or ``RecursionError`` for very deep nesting) when
    the text is not JSON. ``NaN`` and ``Infinity`` are rejected.
    """
    if not text:
        return {}
    return json.loads(text, parse_constant=_reject_constant)


class RequestState(enum.Enum):
    PENDING = "pending"
    SETTLED = "settled"


class PendingRequest:
    """One in-flight invocation of a request built by ``make_request``.

    Owns the connection, the response text buffer and the timeout timer.
    Exactly one continuation is called, exactly once: the first outcome moves
    the request from PENDING to SETTLED and every later outcome is dropped.
    """

    def __init__(
        self,
        config: RequestConfig,
        url: httpx.URL,
        headers: dict[str, str],
        payload: bytes,
        on_success: OnSuccess,
        on_error: OnError,
    ):
        self.config = config
        self.url = url
        self.headers = headers
        self.payload = payload
        self._on_success = on_success
        self._on_error = on_error
        self._state = RequestState.PENDING
        self._task: asyncio.Task | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._started_at = 0.0

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def settled(self) -> bool:
        return self._state is RequestState.SETTLED

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._started_at = time.monotonic()
        self._task = loop.create_task(self._run())
        _in_flight.add(self._task)
        self._task.add_done_callback(_in_flight.discard)
        self._timer = loop.call_later(self.config.timeout / 1000, self._on_timeout)

    def _elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started_at) * 1000)

    def _settle(self) -> bool:
        if self._state is RequestState.SETTLED:
            return False
        self._state = RequestState.SETTLED
        if self._timer is not None:
            self._timer.cancel()
        return True

    def _deliver(self, continuation: OnSuccess | OnError, result: ResponseResult | ErrorResult) -> None:
        try:
            continuation(result)  # type: ignore[arg-type]
        except Exception:
            logger.exception(f"{continuation!r} raised while handling {self.config.method} {self.url}")

    def _succeed(self, result: ResponseResult) -> None:
        if self._settle():
            self._deliver(self._on_success, result)

    def _fail(self, result: ErrorResult) -> None:
        if self._settle():
            self._deliver(self._on_error, result)

    def _on_timeout(self) -> None:
        if self.settled:
            return
        logger.warning(f"{self.config.method} {self.url} timed out after {self.config.timeout}ms")
        # Cancelling the task unwinds the response stream and the client,
        # which closes the connection.
        if self._task is not None:
            self._task.cancel()
        self._fail(ErrorResult(type=ErrorType.TIMEOUT_ERROR, error=RequestTimeoutError(self.config.timeout)))

    async def _run(self) -> None:
        trace_id_var.set(trace_id_generator())
        logger.debug(f"-> {self.config.method} {self.url} ({len(self.payload)} bytes)")
        try:
            status, headers, text = await self._exchange()
        except Exception as e:
            logger.warning(f"{self.config.method} {self.url} failed: {e!r}")
            self._fail(ErrorResult(type=ErrorType.REQUEST_ERROR, error=e))
            return

        try:
            body = parse_body(text)
        except (ValueError, RecursionError) as e:
            logger.warning(f"<- {status} ({self._elapsed_ms()}ms) response is not valid JSON: {e}")
            self._fail(ErrorResult(type=ErrorType.PARSE_ERROR, error=e, raw_response=text))
            return

        logger.info(f"<- {status} ({self._elapsed_ms()}ms)")
        self._succeed(ResponseResult(status=status, headers=collect_headers(headers), body=body))

    async def _exchange(self) -> tuple[int, httpx.Headers, str]:
        transport = transport_for(self.config, self.url)
        async with httpx.AsyncClient(transport=transport, timeout=None) as client:
            async with client.stream(
                method=self.config.method,
                url=self.url,
                headers=self.headers,
                content=self.payload,
            ) as response:
                if self.config.raise_for_status:
                    response.raise_for_status()

                decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
                text = ""
                async for chunk in response.aiter_bytes():
                    text += decoder.decode(chunk)
                text += decoder.decode(b"", final=True)
                return response.status_code, response.headers, text


def make_request(config: RequestConfig | Mapping[str, Any]) -> Invocable:
    """Build a preconfigured JSON request.

    The URL is validated here and an ``InvalidURLError`` is raised for a URL
    that cannot be sent. The returned callable takes ``(on_success, on_error)``
    and issues one request each time it is called; it must be called while an
    event loop is running and returns before either continuation runs.

    Non-2xx statuses are successful outcomes carrying the status, unless the
    config sets ``raise_for_status``, in which case they are RequestErrors.

    An exception raised by a continuation is logged and does not change the
    outcome of the request.
    """
    if not isinstance(config, RequestConfig):
        config = RequestConfig.from_mapping(config)
    url = parse_url(config.url)

    def invoke(on_success: OnSuccess, on_error: OnError) -> None:
        payload = serialize_body(config.body)
        headers = build_headers(config.headers, len(payload))
        PendingRequest(config, url, headers, payload, on_success, on_error).start()

    return invoke


async def request_json(config: RequestConfig | Mapping[str, Any]) -> ResponseResult:
    """Awaitable form of ``make_request``; raises ``JsonRequestError`` on failure."""
    future: asyncio.Future[ResponseResult] = asyncio.get_running_loop().create_future()

    def on_success(result: ResponseResult) -> None:
        if not future.done():
            future.set_result(result)

    def on_error(result: ErrorResult) -> None:
        if not future.done():
            future.set_exception(JsonRequestError(result))

    make_request(config)(on_success, on_error)
    return await future
