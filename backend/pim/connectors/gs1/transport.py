"""
HTTP transport used by the GS1 registration client

The client only needs "send request, get status + body text". Keeping it
behind a small protocol lets tests swap in a fake transport.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import httpx

from pim.core.exceptions import GS1TransportError

logger = logging.getLogger(__name__)


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    json: Optional[Any] = None
    form: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, str]] = None


@dataclass
class HttpResponse:
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    async def send(self, request: HttpRequest) -> HttpResponse:
        ...


class HttpxTransport:
    """
    Default transport on httpx.AsyncClient

    Network-level failures (timeout, DNS, connection reset) are raised as
    GS1TransportError. Nothing is retried here.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def send(self, request: HttpRequest) -> HttpResponse:
        async with httpx.AsyncClient() as client:
            try:
                response = await client.request(
                    method=request.method,
                    url=request.url,
                    headers=request.headers,
                    json=request.json,
                    data=request.form,
                    params=request.params,
                    timeout=self.timeout
                )
            except httpx.TimeoutException as e:
                logger.error(f"GS1 request timed out: {request.method} {request.url}")
                raise GS1TransportError(f"Timeout contacting GS1 ({request.url})") from e
            except httpx.HTTPError as e:
                logger.error(f"GS1 request error: {request.method} {request.url} - {e}")
                raise GS1TransportError(f"Could not reach GS1: {e}") from e

        logger.debug(f"GS1 {request.method} {request.url} -> {response.status_code}")
        return HttpResponse(status=response.status_code, text=response.text)
