import requests
from typing import Callable, Iterator
from urllib3.exceptions import NameResolutionError, NewConnectionError

from linkcrawl.domain.http_response import HttpResponse
from linkcrawl.exceptions import FetchErrorKind, HttpFetchError


def _error_chain(error: BaseException) -> Iterator[BaseException]:
    """Walk the exceptions `requests` wraps: args, urllib3 `.reason`, and cause/context."""
    seen = set()
    pending = [error]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            pending.append(reason)
        pending.append(current.__cause__)
        pending.append(current.__context__)


def classify_request_error(error: requests.exceptions.RequestException) -> FetchErrorKind:
    """Timeouts and refused connections are worth retrying; nothing else is.

    TLS, proxy and DNS failures subclass `ConnectionError` in requests but
    are permanent.
    """
    # ConnectTimeout is both a Timeout and a ConnectionError; check Timeout first.
    if isinstance(error, requests.exceptions.Timeout):
        return FetchErrorKind.TIMEOUT
    if isinstance(error, (requests.exceptions.SSLError, requests.exceptions.ProxyError)):
        return FetchErrorKind.OTHER
    if not isinstance(error, requests.exceptions.ConnectionError):
        return FetchErrorKind.OTHER

    chain = list(_error_chain(error))
    if any(isinstance(e, NameResolutionError) for e in chain):
        return FetchErrorKind.OTHER
    if any(isinstance(e, (NewConnectionError, ConnectionRefusedError)) for e in chain):
        return FetchErrorKind.CONNECTION_REFUSED
    # Aborted or reset connections after connecting are not connect failures.
    return FetchErrorKind.OTHER


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection.
    This enables easy testing without patching and allows swapping HTTP libraries.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: int = 10):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL and return response with status code, body text, Content-Type and final URL."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e, classify_request_error(e)) from e

        # Let real exceptions from header access bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        final_url = getattr(resp, 'url', None)
        if not isinstance(final_url, str) or not final_url:
            final_url = url

        return HttpResponse(resp.status_code, resp.text, ct, final_url)
