"""
A query in progress (or finished) on a pengine
"""

from collections import deque
import logging
import threading
from typing import TYPE_CHECKING, Any, Deque, Dict, Iterable, Iterator, Optional

from .exceptions import NotReadyError, PengineError
from .proof import Proof

if TYPE_CHECKING:
    from .pengine import Pengine

log = logging.getLogger(__name__)


class Query:
    """Pull-based iterator over the proofs of one ask on one pengine.

    Obtain one with ``Pengine.ask()``. Proofs are buffered in the order the
    server sends them. ``has_next()`` is only a hint: the server may report
    that it has no more answers instead of delivering one, so callers must
    be ready for ``next()`` to return None. Once ``next()`` has returned
    None it keeps returning None without contacting the server.

    The query notifies its pengine exactly once when it is finished, either
    because all proofs were consumed or because it was stopped.

    Lock order: a query's lock is taken before its pengine's lock.
    """

    def __init__(self, pengine: "Pengine", ask: Optional[str] = None):
        self._pengine = pengine
        self.ask = ask
        self._lock = threading.RLock()
        self._proofs: Deque[Dict[str, Any]] = deque()
        self._has_more = True
        self._result_seen = False
        self._released = False
        self._stopped = False

    # Caller side

    def has_next(self) -> bool:
        """True if we *think* there may be another proof"""
        with self._lock:
            return self._has_more or bool(self._proofs)

    def next(self) -> Optional[Proof]:
        """Return the next proof, or None if the query is done.

        Failures talking to the server end the iteration: they are logged and
        the query is treated as exhausted.
        """
        with self._lock:
            try:
                return self._next_proof()
            except PengineError as e:
                log.warning(
                    "Query %r failed while fetching proofs, treating as exhausted: %s",
                    self.ask,
                    e,
                )
                self.abandon()
                return None

    def _next_proof(self) -> Optional[Proof]:
        if not self._proofs and not self._has_more:
            return None

        # Output and other non-answer events may have been consumed so far
        if not self._result_seen:
            self._pengine.drain_pending(self)

        if not self._proofs and self._has_more:
            self._pengine.pull_more(self)

        if self._proofs:
            return self._pop()

        if self._has_more:
            # The server promised more but sent none; end it on both sides
            log.warning(
                "Pengine %s stopped answering query %r", self._pengine.id, self.ask
            )
            try:
                self._pengine.stop(self)
            finally:
                self.abandon()
        return None

    def _pop(self) -> Proof:
        proof = Proof(self._proofs.popleft())
        if not self._has_more and not self._proofs:
            self._release()
        return proof

    def stop(self) -> None:
        """Stop the query on the server, discarding any buffered proofs.

        Use this when only the first few answers are needed. Stopping a query
        that is already finished does nothing.
        """
        with self._lock:
            try:
                if self._has_more:
                    self._pengine.stop(self)
            finally:
                self._stopped = True
                self.abandon()

    def __iter__(self) -> Iterator[Proof]:
        return self

    def __next__(self) -> Proof:
        proof = self.next()
        if proof is None:
            raise StopIteration
        return proof

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def is_released(self) -> bool:
        return self._released

    # Pengine side

    @property
    def more_expected(self) -> bool:
        """True while the server may still send answers"""
        with self._lock:
            return self._has_more

    @property
    def awaiting_result(self) -> bool:
        """True until an answer or an end-of-answers event has been seen"""
        with self._lock:
            return self._has_more and not self._result_seen

    def mark_pending(self) -> None:
        """Called by the pengine before it requests the next chunk"""
        with self._lock:
            self._result_seen = False

    def add_new_data(self, records: Iterable[Dict[str, Any]]) -> None:
        """Called by the pengine when the server sent answers"""
        with self._lock:
            if self._released:
                raise NotReadyError("Query has been released, cannot add answers")
            self._proofs.extend(records)
            self._result_seen = True

    def no_more(self) -> None:
        """Called by the pengine when the server has no more answers"""
        with self._lock:
            self._result_seen = True
            if not self._has_more:
                return
            self._has_more = False
            if not self._proofs:
                self._release()
            # otherwise released when the last buffered proof is taken

    def abandon(self) -> None:
        """Drop buffered proofs and release the query; nothing more will arrive"""
        with self._lock:
            self._has_more = False
            self._proofs.clear()
            self._release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        self._pengine.release(self)

    def dump_debug_state(self) -> None:
        """Log the query state at debug level"""
        with self._lock:
            log.debug("--- Query %r ---", self.ask)
            log.debug("%s", "has more solutions" if self._has_more else "no more solutions")
            log.debug("available proofs %s", list(self._proofs))
            log.debug("pengine is %s", self._pengine.id)

    def __repr__(self) -> str:
        return (
            f"Query(ask={self.ask!r}, buffered={len(self._proofs)}, "
            f"more={self._has_more}, released={self._released})"
        )
