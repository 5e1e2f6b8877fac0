"""
Pengine configuration: server location, creation options and request forming
"""

from dataclasses import asdict, dataclass, replace
import json
import logging
import os
from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from .constants import (
    DEFAULT_APPLICATION,
    DEFAULT_CHUNK,
    DESTROY_COMMAND,
    ENDPOINT_PREFIX,
    ENV_APPLICATION,
    ENV_CHUNK,
    ENV_DESTROY,
    ENV_SERVER,
    ENV_TIMEOUT,
    NETWORK_TIMEOUT,
    NEXT_COMMAND,
    PULL_RESPONSE_COMMAND,
    RESPONSE_FORMAT,
    STOP_COMMAND,
)
from .exceptions import ConfigurationError
from .utils import parse_env_bool, parse_env_float, parse_env_int

if TYPE_CHECKING:
    from .pengine import Pengine
    from .transport import HttpTransport

log = logging.getLogger(__name__)


@dataclass
class PengineBuilder:
    """Settings used to create pengines.

    Life cycle:

    1. instantiate a PengineBuilder (or use ``PengineBuilder.from_env()``)
    2. set its properties
    3. call ``new_pengine()`` to create pengines from it
    4. use and destroy the pengines

    With ``destroy`` left at True the server destroys the pengine as soon as
    its first query concludes.
    """

    server: Optional[str] = None
    application: str = DEFAULT_APPLICATION
    ask: Optional[str] = None
    chunk: int = DEFAULT_CHUNK
    destroy: bool = True
    srctext: Optional[str] = None
    srcurl: Optional[str] = None
    alias: Optional[str] = None
    timeout: float = NETWORK_TIMEOUT

    def __post_init__(self):
        self._validate_chunk()

    @classmethod
    def from_env(cls, **overrides) -> "PengineBuilder":
        """Builder from PENGINE_* environment variables, explicit values win"""
        settings: Dict[str, Any] = {
            "server": os.getenv(ENV_SERVER),
            "application": os.getenv(ENV_APPLICATION) or DEFAULT_APPLICATION,
            "chunk": parse_env_int(ENV_CHUNK) or DEFAULT_CHUNK,
            "destroy": parse_env_bool(ENV_DESTROY, default=True),
            "timeout": parse_env_float(ENV_TIMEOUT) or NETWORK_TIMEOUT,
        }
        settings.update(overrides)
        return cls(**settings)

    def copy(self) -> "PengineBuilder":
        """Independent copy of this builder"""
        return replace(self)

    def validate(self) -> None:
        """Validate that a pengine can be created from these settings"""
        self._validate_chunk()
        self._base_url()

    def _validate_chunk(self) -> None:
        if not isinstance(self.chunk, int) or self.chunk < 1:
            raise ConfigurationError(
                f"chunk must be a positive integer, got {self.chunk!r}"
            )

    def _base_url(self) -> httpx.URL:
        if not self.server:
            raise ConfigurationError("Cannot get actual URL without setting server")
        try:
            base = httpx.URL(str(self.server))
        except httpx.InvalidURL as e:
            raise ConfigurationError(f"Invalid server URL '{self.server}'") from e
        if not base.is_absolute_url or not base.host:
            raise ConfigurationError(
                f"Server URL '{self.server}' must be absolute, e.g. http://localhost:3030/"
            )
        return base

    def actual_url(self, action: str, pengine_id: Optional[str] = None) -> str:
        """URL to post an action to, addressed to a pengine when an id is given"""
        base = self._base_url()
        relative = ENDPOINT_PREFIX + action
        if pengine_id is not None:
            relative += "?" + urlencode({"format": RESPONSE_FORMAT, "id": pengine_id})
        return str(base.join(relative))

    def request_body_create(self) -> str:
        """JSON body of the create request"""
        body: Dict[str, Any] = {}
        if not self.destroy:
            body["destroy"] = "false"
        if self.chunk > 1:
            body["chunk"] = self.chunk
        body["format"] = RESPONSE_FORMAT
        if self.application != DEFAULT_APPLICATION:
            body["application"] = self.application
        if self.srctext is not None:
            body["srctext"] = self.srctext
        if self.srcurl is not None:
            body["srcurl"] = str(self.srcurl)
        if self.ask is not None:
            body["ask"] = self.ask
        return json.dumps(body)

    def request_body_ask(self, query: str) -> str:
        return f"ask({query},[])."

    def request_body_next(self) -> str:
        return NEXT_COMMAND

    def request_body_stop(self) -> str:
        return STOP_COMMAND

    def request_body_destroy(self) -> str:
        return DESTROY_COMMAND

    def request_body_pull_response(self) -> str:
        return PULL_RESPONSE_COMMAND

    def has_ask(self) -> bool:
        return self.ask is not None

    def remove_ask(self) -> None:
        self.ask = None

    def new_pengine(self, transport: Optional["HttpTransport"] = None) -> "Pengine":
        """Create a pengine on the server from a snapshot of these settings"""
        from .pengine import Pengine

        return Pengine.create(self, transport=transport)

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary for debugging and inspection"""
        summary = asdict(self)
        if summary["srctext"] is not None:
            summary["srctext"] = f"<{len(self.srctext)} chars>"
        return summary

    def dump_debug_state(self) -> None:
        """Log the builder settings at debug level"""
        summary = self.get_summary()
        log.debug("--- PengineBuilder ---")
        for key, value in summary.items():
            log.debug("%s %s", key, value)
        log.debug(
            "%s at end of query", "destroy" if self.destroy else "retain"
        )
        log.debug("--- end PengineBuilder ---")
