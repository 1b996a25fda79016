import itertools
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional

from journal_parser import parse_entry
from layout import (
    Connector,
    ConnectorPolicy,
    Geometry,
    Layout,
    NumberLabel,
    compute_layout,
    resolve_connectors,
)
from sequencer import LogEntry, TableGroup, entry_numbers, group_entries, sequence_entries

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Runs ``callback(generation)`` once ``delay`` seconds after the last
    ``schedule()``.

    Scheduling again while a run is pending cancels that run and restarts the
    delay. ``flush()`` runs a pending callback immediately on the calling
    thread; it is a no-op when nothing is pending. A callback publishes its
    result through ``commit(generation, apply)``, which drops the result once a
    later ``schedule()`` or ``invalidate()`` has moved the generation on.
    """

    def __init__(self, callback: Callable[[int], None], delay: float = 0.3):
        self.callback = callback
        self.delay = delay
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def invalidate(self) -> None:
        """Cancel a pending run and void the result of one already running."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def commit(self, generation: int, apply: Callable[[], None]) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            apply()
            return True

    def flush(self) -> None:
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            self._timer = None
            generation = self._generation
        self.callback(generation)

    def _fire(self, generation: int) -> None:
        with self._lock:
            # superseded by a later schedule(), or already flushed
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self.callback(generation)


@dataclass
class ChatMessage:
    id: str
    text: str
    created_at: datetime


@dataclass(frozen=True)
class SequenceStats:
    total_events: int
    min_number: int
    max_number: int


class JournalSession:
    """
    The entry collection of one interactive session and everything derived
    from it.

    ``submit`` and ``clear`` resequence and regroup synchronously. Layout and
    connectors are refreshed through a debouncer; reading ``layout`` or
    ``connectors`` flushes a pending refresh first.
    """

    def __init__(
        self,
        geometry: Optional[Geometry] = None,
        policy=ConnectorPolicy.CONSECUTIVE,
        redraw_delay: float = 0.3,
    ):
        self.geometry = geometry or Geometry()
        self.policy = ConnectorPolicy(policy)
        self._ids = itertools.count(1)
        self._entries: List[LogEntry] = []
        self._groups: List[TableGroup] = []
        self.messages: List[ChatMessage] = []
        self._layout = compute_layout([], self.geometry)
        self._connectors: List[Connector] = []
        self._refresh = Debouncer(self._relayout, redraw_delay)

    # ---------------- mutations ----------------

    def submit(self, text: str) -> Optional[LogEntry]:
        if not text or not text.strip():
            logger.warning("Ignoring empty submission")
            return None

        n = next(self._ids)
        now = datetime.now()
        parsed = parse_entry(text)
        entry = LogEntry(
            id=f"entry-{n}",
            seq=n,
            created_at=now,
            raw_text=parsed.raw_text,
            first_column=parsed.first_column,
            has_request=parsed.has_request,
            has_response=parsed.has_response,
            request_timestamp=parsed.request_timestamp,
            response_timestamp=parsed.response_timestamp,
        )
        self.messages.append(ChatMessage(f"message-{n}", text, now))
        self._entries = sequence_entries(self._entries + [entry])
        self._groups = group_entries(self._entries)
        self._refresh.schedule()
        logger.info(
            "Added %s (%s): %d entries in %d groups",
            entry.id, entry.first_column, len(self._entries), len(self._groups),
        )
        return self.get(entry.id)

    def clear(self) -> None:
        self._refresh.invalidate()
        self._entries = []
        self._groups = []
        self.messages = []
        self._layout = compute_layout([], self.geometry)
        self._connectors = []
        logger.info("Cleared all entries")

    def resize(self, width: int) -> None:
        """Geometry change: only layout and connectors are recomputed."""
        if width == self.geometry.width:
            return
        self.geometry = replace(self.geometry, width=width)
        self._refresh.schedule()

    # ---------------- derived state ----------------

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    @property
    def groups(self) -> List[TableGroup]:
        return list(self._groups)

    def get(self, entry_id: str) -> Optional[LogEntry]:
        return next((e for e in self._entries if e.id == entry_id), None)

    @property
    def layout(self) -> Layout:
        self._refresh.flush()
        return self._layout

    @property
    def labels(self) -> List[NumberLabel]:
        return list(self.layout.labels)

    @property
    def connectors(self) -> List[Connector]:
        self._refresh.flush()
        return list(self._connectors)

    @property
    def stats(self) -> SequenceStats:
        numbers = [n for entry in self._entries for n in entry_numbers(entry)]
        if not numbers:
            return SequenceStats(0, 0, 0)
        return SequenceStats(len(numbers), min(numbers), max(numbers))

    def _relayout(self, generation: int) -> None:
        layout = compute_layout(self._groups, self.geometry)
        connectors = resolve_connectors(layout.labels, self.policy)

        def apply():
            self._layout = layout
            self._connectors = connectors

        if not self._refresh.commit(generation, apply):
            logger.debug("Dropped stale layout for generation %d", generation)
