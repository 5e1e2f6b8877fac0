"""
HTTP transport for pengine requests
"""

import logging
from typing import Optional

import httpx

from .constants import NETWORK_TIMEOUT
from .exceptions import TransportError

log = logging.getLogger(__name__)


class HttpTransport:
    """Posts request bodies to a pengine server over one httpx client"""

    def __init__(
        self,
        timeout: float = NETWORK_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def post(self, url: str, body: str, content_type: str) -> str:
        """Issue one blocking POST and return the response text"""
        log.debug("POST %s (%s)", url, content_type)
        try:
            response = self._client.post(
                url,
                content=body.encode("utf-8"),
                headers={"Content-Type": content_type, "Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Server returned {e.response.status_code} for {url}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
        return response.text

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
