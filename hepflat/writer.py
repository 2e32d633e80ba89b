"""Per-event commit protocol on top of a :class:`~hepflat.io.store_base.Store`.

The writer is an explicit state machine::

    IDLE --open--> COLLECTION_OPEN --commit_event--> EVENT_COMMITTED
                        ^                                  |
                        +-------------- clear -------------+
    (any) --finalize--> FINALIZED

Calls made in the wrong state raise :class:`WriterStateError` (or
:class:`AlreadyFinalized` once the stream is closed) instead of quietly
producing a corrupt stream.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, Optional

from .errors import AlreadyFinalized, WriteFailure, WriterStateError
from .io.store_base import Store
from .models import EventHeader, MCParticle, MCParticleCollection

logger = logging.getLogger(__name__)


class WriterState(Enum):
    IDLE = "idle"
    COLLECTION_OPEN = "collection_open"
    EVENT_COMMITTED = "event_committed"
    FINALIZED = "finalized"


class CollectionWriter:
    """Buffers one event's records and commits them to ``store``.

    Typical use::

        with CollectionWriter(store) as w:
            w.open("events", "MCParticles")
            for coll in collections:
                w.extend(coll)
                w.commit_event()
    """

    def __init__(self, store: Store):
        self.store = store
        self._state = WriterState.IDLE
        self._stream: Optional[str] = None
        self._buffer: Optional[MCParticleCollection] = None
        self._handle: Any = None
        self._n_events = 0

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def buffer(self) -> MCParticleCollection:
        if self._buffer is None:
            raise WriterStateError("no collection is open")
        return self._buffer

    @property
    def n_events(self) -> int:
        return self._n_events

    def _check_not_finalized(self, op: str) -> None:
        if self._state is WriterState.FINALIZED:
            raise AlreadyFinalized(f"cannot {op}: stream already finalized")

    def open(self, stream_name: str, collection_name: str) -> None:
        """Create and register ``collection_name`` in ``stream_name``.

        Repeating the call with the same names does nothing.
        """
        self._check_not_finalized("open")
        if self._state is not WriterState.IDLE:
            if (self._stream, self._buffer.name) == (stream_name, collection_name):
                return
            raise WriterStateError(
                f"writer is already open for {self._stream}/{self._buffer.name}, "
                f"cannot reopen as {stream_name}/{collection_name}"
            )
        try:
            self._handle = self.store.create_named_collection(collection_name, stream=stream_name)
            self.store.register_for_write(collection_name)
        except (OSError, ValueError) as e:
            raise WriteFailure(f"could not create collection {collection_name!r}: {e}") from e
        self._stream = stream_name
        self._buffer = MCParticleCollection(name=collection_name)
        self._state = WriterState.COLLECTION_OPEN
        logger.debug("opened %s/%s on %s store", stream_name, collection_name, self.store.format_name)

    def append(self, record: MCParticle) -> int:
        """Buffer ``record`` for the current event; returns its index."""
        self._check_not_finalized("append")
        if self._state is WriterState.IDLE:
            raise WriterStateError("cannot append: no collection is open")
        if self._state is WriterState.EVENT_COMMITTED:
            raise WriterStateError("cannot append: event committed but buffer not cleared")
        return self._buffer.append(record)

    def extend(self, records: Iterable[MCParticle]) -> None:
        for r in records:
            self.append(r)

    def commit_event(self, header: Optional[EventHeader] = None, *, clear: bool = True) -> None:
        """Write the buffered records as one event.

        All or nothing: if the store fails, whatever it staged is dropped,
        the buffer is kept and :class:`WriteFailure` is raised.
        """
        self._check_not_finalized("commit event")
        if self._state is WriterState.IDLE:
            raise WriterStateError("cannot commit: no collection is open")
        if self._state is WriterState.EVENT_COMMITTED:
            raise WriterStateError("cannot commit: event already committed, clear the buffer first")

        header = header or EventHeader(event_number=self._n_events)
        try:
            for r in self._buffer:
                self.store.append(self._handle, r)
            self.store.commit_event(header)
        except Exception as e:
            self.store.clear_collection(self._handle)
            raise WriteFailure(f"commit of event {header.event_number} failed: {e}") from e
        self.store.clear_collection(self._handle)

        self._n_events += 1
        self._state = WriterState.EVENT_COMMITTED
        logger.debug("committed event %d with %d records", header.event_number, len(self._buffer))
        if clear:
            self.clear()

    def clear(self) -> None:
        """Empty the buffer so the next event can be filled."""
        self._check_not_finalized("clear")
        if self._state is WriterState.IDLE:
            raise WriterStateError("cannot clear: no collection is open")
        self._buffer.clear()
        self._state = WriterState.COLLECTION_OPEN

    def finalize(self) -> None:
        """Close the stream. Calling it again is a no-op."""
        if self._state is WriterState.FINALIZED:
            return
        try:
            self.store.finalize()
        except Exception as e:
            raise WriteFailure(f"finalize failed: {e}") from e
        finally:
            self._state = WriterState.FINALIZED
        logger.debug("finalized stream after %d events", self._n_events)

    def __enter__(self) -> "CollectionWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Events committed before the error stay readable.
        if exc_type is None:
            self.finalize()
            return
        try:
            self.finalize()
        except WriteFailure:
            logger.warning("finalize after %s failed", exc_type.__name__, exc_info=True)
