"""
A pengine: one Prolog engine on a remote server, driven over HTTP
"""

from enum import Enum
import logging
import threading
from typing import Optional, Tuple

from .config import PengineBuilder
from .constants import ACTION_CREATE, ACTION_SEND, JSON_CONTENT_TYPE, PROLOG_CONTENT_TYPE
from .events import EventKind, PengineEvent, decode_event
from .exceptions import (
    ConfigurationError,
    CouldNotCreateError,
    NotReadyError,
    PengineError,
    PengineServerError,
)
from .query import Query
from .telemetry import TelemetryContext, TelemetryReporter
from .transport import HttpTransport

log = logging.getLogger(__name__)


class PengineState(Enum):
    UNBORN = "unborn"
    IDLE = "idle"
    BUSY = "busy"
    DESTROYED = "destroyed"


class Pengine:
    """Client side of one remote pengine.

    A pengine runs at most one query at a time. Ask a query with ``ask()``
    and pull proofs from the returned Query; when the query is exhausted or
    stopped it releases the pengine, which then accepts the next ask (or is
    destroyed, when the builder's ``destroy`` flag is set).

    Every request is a blocking HTTP round trip. All state changes happen
    under a per-pengine lock.
    """

    def __init__(
        self,
        builder: PengineBuilder,
        transport: Optional[HttpTransport] = None,
        reporters: Tuple[TelemetryReporter, ...] = (),
    ):
        self._builder = builder.copy()
        self._owns_transport = transport is None
        self._transport = (
            transport if transport is not None else HttpTransport(timeout=builder.timeout)
        )
        self._lock = threading.RLock()
        self._id: Optional[str] = None
        self._state = PengineState.UNBORN
        self._query: Optional[Query] = None
        self._destroy_on_finish = builder.destroy
        self.slave_limit: Optional[int] = None
        self.tele = TelemetryContext(*reporters)

    @classmethod
    def create(
        cls,
        builder: PengineBuilder,
        transport: Optional[HttpTransport] = None,
        reporters: Tuple[TelemetryReporter, ...] = (),
    ) -> "Pengine":
        """Create a pengine on the server.

        If the builder carries an initial ask, the server starts answering it
        right away; the resulting query is available as ``current_query``.
        """
        pengine = cls(builder, transport=transport, reporters=reporters)
        pengine._create()
        return pengine

    # Properties

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def state(self) -> PengineState:
        return self._state

    @property
    def current_query(self) -> Optional[Query]:
        return self._query

    @property
    def is_destroyed(self) -> bool:
        return self._state is PengineState.DESTROYED

    @property
    def builder(self) -> PengineBuilder:
        return self._builder

    # Life cycle

    def _create(self) -> None:
        with self._lock:
            if self._state is not PengineState.UNBORN:
                raise NotReadyError("Pengine has already been created")
            try:
                self._builder.validate()
                url = self._builder.actual_url(ACTION_CREATE)
            except ConfigurationError as e:
                raise CouldNotCreateError(f"Cannot create pengine: {e}") from e

            query = None
            if self._builder.has_ask():
                query = Query(self, self._builder.ask)
                self._query = query

            try:
                with self.tele("pengine.create"):
                    raw = self._transport.post(
                        url, self._builder.request_body_create(), JSON_CONTENT_TYPE
                    )
                event = decode_event(raw)
            except PengineError as e:
                self._query = None
                raise CouldNotCreateError(f"Cannot create pengine: {e}") from e

            if event.kind is EventKind.ERROR:
                self._query = None
                raise CouldNotCreateError(
                    f"Server refused to create pengine: {event.message}"
                )
            if event.kind is not EventKind.CREATE or not event.session_id:
                self._query = None
                raise CouldNotCreateError(
                    f"Expected a create event with an id, got '{event.name}'"
                )

            self._id = event.session_id
            self.slave_limit = event.slave_limit
            self._state = PengineState.BUSY if query else PengineState.IDLE
            self._builder.remove_ask()
            log.info(
                "Created pengine %s on %s%s",
                self._id,
                self._builder.server,
                f" (alias {self._builder.alias})" if self._builder.alias else "",
            )

            if query is None:
                if event.nested is not None:
                    self._handle_event(event.nested, None)
                return

            try:
                if event.nested is not None:
                    self._handle_event(event.nested, query)
            except PengineServerError as e:
                query.abandon()
                raise CouldNotCreateError(f"Initial query failed: {e}") from e

    def ask(self, query_text: str) -> Query:
        """Ask a query, returning a Query to pull its proofs from.

        Raises NotReadyError while another query is still attached or once
        the pengine is destroyed.
        """
        query = Query(self, query_text)
        with query._lock, self._lock:
            if self._state is PengineState.DESTROYED:
                raise NotReadyError("Pengine has been destroyed")
            if self._id is None:
                raise NotReadyError("Pengine has not been created")
            if self._query is not None:
                raise NotReadyError("Pengine is already running a query")

            self._query = query
            self._state = PengineState.BUSY
            log.debug("Pengine %s asking %s", self._id, query_text)
            try:
                self._consume(query, self._builder.request_body_ask(query_text), "ask")
            except PengineError:
                query.abandon()
                raise
            return query

    # Entry points that act on a query lock it before the pengine, the same
    # order Query.next() and Query.stop() use.

    def pull_more(self, query: Query) -> None:
        """Request the next chunk of answers for the attached query"""
        with query._lock, self._lock:
            self._check_current(query)
            query.mark_pending()
            self._consume(query, self._builder.request_body_next(), "next")

    def drain_pending(self, query: Query) -> None:
        """Pull outstanding responses until an answer or the end is seen"""
        with query._lock, self._lock:
            self._check_current(query)
            self._drain(query)

    def stop(self, query: Query) -> None:
        """Stop the attached query on the server and detach it"""
        with query._lock, self._lock:
            self._check_current(query)
            try:
                if query.more_expected:
                    event = self._send(self._builder.request_body_stop(), "stop")
                    self._handle_event(event, query)
            finally:
                self._finish(query)

    def release(self, query: Query) -> None:
        """Called by a Query exactly once, when it is finished"""
        with self._lock:
            self._finish(query)

    def destroy(self) -> None:
        """Destroy the pengine on the server. Calling it again does nothing."""
        with self._lock:
            if self._state is PengineState.DESTROYED:
                return
            if self._id is None:
                self._state = PengineState.DESTROYED
                return
            event = self._send(self._builder.request_body_destroy(), "destroy")
            self._query = None
            self._state = PengineState.DESTROYED
            log.info("Destroyed pengine %s", self._id)
            if event.kind is EventKind.ERROR:
                raise PengineServerError(event.message, event.code)

    def close(self) -> None:
        """Destroy the pengine and release the transport we created"""
        try:
            self.destroy()
        finally:
            if self._owns_transport:
                self._transport.close()

    def __enter__(self) -> "Pengine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Internals

    def _check_current(self, query: Query) -> None:
        if self._state is PengineState.DESTROYED:
            raise NotReadyError("Pengine has been destroyed")
        if self._id is None:
            raise NotReadyError("Pengine has not been created")
        if self._query is not query:
            raise NotReadyError("Query is not the current query of this pengine")

    def _finish(self, query: Query) -> None:
        if self._query is not query:
            return
        self._query = None
        if self._state is PengineState.DESTROYED:
            return
        self._state = PengineState.IDLE
        if self._destroy_on_finish:
            try:
                self.destroy()
            except PengineError as e:
                log.warning("Automatic destroy of pengine %s failed: %s", self._id, e)

    def _send(self, body: str, command: str) -> PengineEvent:
        url = self._builder.actual_url(ACTION_SEND, self._id)
        log.debug("Pengine %s sending %s", self._id, body)
        with self.tele(f"pengine.{command}"):
            raw = self._transport.post(url, body, PROLOG_CONTENT_TYPE)
        return decode_event(raw)

    def _consume(self, query: Query, body: str, command: str) -> None:
        self._handle_event(self._send(body, command), query)
        self._drain(query)

    def _drain(self, query: Query) -> None:
        while (
            query.awaiting_result
            and self._query is query
            and self._state is not PengineState.DESTROYED
        ):
            event = self._send(
                self._builder.request_body_pull_response(), "pull_response"
            )
            self._handle_event(event, query)

    def _handle_event(self, event: PengineEvent, query: Optional[Query]) -> None:
        kind = event.kind
        if kind is EventKind.DATA:
            self.tele.count("pengine.proofs", len(event.records))
            if query is not None:
                query.add_new_data(event.records)
                if not event.more:
                    query.no_more()
        elif kind is EventKind.NO_MORE_DATA:
            if query is not None:
                query.no_more()
        elif kind is EventKind.DESTROY:
            self._state = PengineState.DESTROYED
            log.info("Pengine %s was destroyed by the server", self._id)
            if event.nested is not None:
                self._handle_event(event.nested, query)
            if query is not None:
                query.no_more()
        elif kind is EventKind.ERROR:
            if event.name == "died":
                self._state = PengineState.DESTROYED
            raise PengineServerError(event.message, event.code)
        elif kind is EventKind.CREATE:
            if event.nested is not None:
                self._handle_event(event.nested, query)
        else:
            log.debug("Pengine %s ignoring '%s' event", self._id, event.name)

    def __repr__(self) -> str:
        return f"Pengine(id={self._id!r}, state={self._state.value})"
