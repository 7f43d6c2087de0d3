import ssl

import httpx

from .exceptions import InvalidURLError
from .models import RequestConfig
from .types import TransportFactory


def _plain_transport(config: RequestConfig) -> httpx.AsyncBaseTransport:
    return httpx.AsyncHTTPTransport(retries=0)


def ssl_verify_option(verify: bool | str | ssl.SSLContext) -> bool | ssl.SSLContext:
    """A CA bundle path becomes an SSL context trusting that bundle."""
    if isinstance(verify, str):
        return ssl.create_default_context(cafile=verify)
    return verify


def _secure_transport(config: RequestConfig) -> httpx.AsyncBaseTransport:
    return httpx.AsyncHTTPTransport(verify=ssl_verify_option(config.verify), retries=0)


# Keyed by URL scheme. A URL whose scheme is not listed here is rejected
# before any request is issued.
TRANSPORTS: dict[str, TransportFactory] = {
    "http": _plain_transport,
    "https": _secure_transport,
}


def parse_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidURLError(url, str(e)) from e

    if not parsed.is_absolute_url:
        raise InvalidURLError(url, "URL must be absolute")
    if parsed.scheme not in TRANSPORTS:
        raise InvalidURLError(url, f"unsupported scheme {parsed.scheme!r}")
    if not parsed.host:
        raise InvalidURLError(url, "URL has no host")
    return parsed


def transport_for(config: RequestConfig, url: httpx.URL) -> httpx.AsyncBaseTransport:
    return TRANSPORTS[url.scheme](config)
