from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from .constants import ENV_TELEMETRY

log = logging.getLogger(__name__)

# Nesting of round-trip scopes, per thread/async context
_scope_stack_var: ContextVar[Optional[List[str]]] = ContextVar(
    "pengine_scope_stack", default=None
)

# Evaluated once at import time
_TELEMETRY_ENABLED = os.getenv(ENV_TELEMETRY) == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata) -> None: ...
    def record_metric(self, scope: str, value: Any, **metadata) -> None: ...


@dataclass(frozen=True)
class _NoOpTelemetryContext:
    """Stateless no-op context used whenever telemetry is off."""

    def __call__(self, name: str, **metadata):
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None

    def count(self, name: str, increment: int = 1, **metadata):
        pass


class _EnabledTelemetryContext:
    """Times scopes and forwards counters to the configured reporters."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(self, name: str, **metadata):
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata):
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        stack = _scope_stack_var.get() or []
        scope_path = ".".join(stack + [name])
        token = _scope_stack_var.set(stack + [name])
        start_time = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start_time
            _scope_stack_var.reset(token)
            self._each_reporter(
                "record_timing", scope_path, duration, depth=len(stack), **metadata
            )

    def count(self, name: str, increment: int = 1, **metadata):
        """Record a counter metric within the current scope"""
        stack = _scope_stack_var.get() or []
        scope_path = ".".join(stack + [name])
        self._each_reporter(
            "record_metric", scope_path, increment, metric_type="counter", **metadata
        )

    def _each_reporter(self, method: str, scope: str, value: Any, **metadata):
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

TelemetryContextProtocol = Union[_EnabledTelemetryContext, _NoOpTelemetryContext]


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """
    Factory that returns either a full-featured telemetry context or the
    shared no-op instance when telemetry is disabled or nobody listens.
    """
    if _TELEMETRY_ENABLED and reporters:
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class _SimpleReporter:
    """In-memory reporter for development use.

    Call ``get_report()`` to see round-trip timings and proof counts.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: Dict[str, deque] = {}
        self.metrics: Dict[str, deque] = {}

    def record_timing(self, scope: str, duration: float, **metadata):
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata):
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def totals(self) -> Dict[str, Tuple[int, float]]:
        """(calls, total seconds) per timed scope"""
        return {
            scope: (len(values), sum(v[0] for v in values))
            for scope, values in self.timings.items()
        }

    def get_report(self) -> str:
        lines = ["=== Pengine Telemetry ===", "--- Round trips ---"]
        for scope, (calls, total) in sorted(self.totals().items()):
            lines.append(
                f"{scope:<30} | Calls: {calls:<4} | "
                f"Avg: {total / calls:.4f}s | Total: {total:.4f}s"
            )
        if self.metrics:
            lines.append("--- Counters ---")
            for scope, values in sorted(self.metrics.items()):
                total = sum(v[0] for v in values if isinstance(v[0], (int, float)))
                lines.append(f"{scope:<30} | Count: {len(values):<4} | Total: {total:,.0f}")
        return "\n".join(lines)
