"""
HTTP transport used by the route fetcher and the device channel.

Both collaborators only see HttpRequest -> HttpResponse; anything that
implements `send()` with that shape can be injected (tests use a scripted
fake). The default implementation wraps a requests.Session.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from .config import HTTP_TIMEOUT

log = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when no HTTP response could be obtained at all."""
    pass


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: Optional[bytes] = None


class RequestsTransport:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = HTTP_TIMEOUT):
        """
        Params:
            session: optional requests.Session for connection reuse
            timeout: seconds to wait for the remote side before giving up
        """
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, request: HttpRequest) -> HttpResponse:
        try:
            r = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", request.method, request.url, e)
            raise TransportError(str(e)) from e
        return HttpResponse(status_code=r.status_code, body=r.content or None)
