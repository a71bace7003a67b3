"""HTTP transport used by the scoring client."""

import asyncio
import logging
from typing import Any, NamedTuple, Optional, Protocol

import requests

from src.config.constants import DEFAULT_TIMEOUT_SECONDS
from src.errors import TransportError

logger = logging.getLogger(__name__)


class TransportResponse(NamedTuple):
    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(Protocol):
    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Any = None,
    ) -> TransportResponse:
        ...


class HttpTransport:
    """Sends JSON requests with ``requests`` without blocking the event loop.

    Each call runs in a worker thread, so only the awaiting task is
    suspended while the request is in flight.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _send(self, method, path, params, json):
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"{method} {path} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            payload = r.json()
        except ValueError:
            payload = r.text

        return TransportResponse(r.status_code, payload)

    async def request(self, method, path, params=None, json=None):
        logger.debug(f"{method} {path} params={params}")
        return await asyncio.to_thread(self._send, method, path, params, json)

    def close(self):
        self.session.close()
