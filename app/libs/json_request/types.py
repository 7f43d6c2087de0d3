from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .models import ErrorResult, RequestConfig, ResponseResult

OnSuccess = Callable[["ResponseResult"], None]
OnError = Callable[["ErrorResult"], None]
Invocable = Callable[[OnSuccess, OnError], None]

TransportFactory = Callable[["RequestConfig"], httpx.AsyncBaseTransport]
