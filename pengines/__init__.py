"""
Pengines client: run Prolog queries on a remote pengine server
"""

import importlib.metadata
import logging
from typing import Iterator

from .config import PengineBuilder
from .events import EventKind, PengineEvent, decode_event
from .exceptions import (
    ConfigurationError,
    CouldNotCreateError,
    FormatError,
    NotReadyError,
    PengineError,
    PengineServerError,
    TransportError,
    UnboundVariableError,
)
from .pengine import Pengine, PengineState
from .proof import Proof
from .query import Query
from .telemetry import TelemetryContext, TelemetryReporter
from .transport import HttpTransport

try:
    __version__ = importlib.metadata.version("pengines")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # fallback version

# Null handler so applications without logging configured stay quiet
logging.getLogger(__name__).addHandler(logging.NullHandler())


def solve(query: str, **builder_options) -> Iterator[Proof]:
    """Run one query on a fresh pengine and yield its proofs.

    The pengine is destroyed when the generator is exhausted or closed.
    """
    builder = PengineBuilder.from_env(**builder_options)
    with builder.new_pengine() as pengine:
        q = pengine.ask(query)
        try:
            yield from q
        finally:
            q.stop()


__all__ = [
    # Core classes
    "Pengine",
    "PengineBuilder",
    "PengineState",
    "Query",
    "Proof",
    "HttpTransport",
    # One-shot function
    "solve",
    # Events
    "EventKind",
    "PengineEvent",
    "decode_event",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "PengineError",
    "ConfigurationError",
    "NotReadyError",
    "CouldNotCreateError",
    "TransportError",
    "PengineServerError",
    "UnboundVariableError",
    "FormatError",
]
