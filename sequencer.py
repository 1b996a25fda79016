import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"


# request sorts before response on identical timestamps within one entry
KIND_ORDER = {EventKind.REQUEST: 0, EventKind.RESPONSE: 1}


@dataclass(frozen=True)
class LogEntry:
    id: str
    seq: int
    created_at: datetime
    raw_text: str
    first_column: str
    has_request: bool = False
    has_response: bool = False
    request_timestamp: Optional[datetime] = None
    response_timestamp: Optional[datetime] = None
    request_number: Optional[int] = None
    response_number: Optional[int] = None

    def timestamp_for(self, kind: EventKind) -> Optional[datetime]:
        if kind is EventKind.REQUEST:
            return self.request_timestamp if self.has_request else None
        return self.response_timestamp if self.has_response else None

    def number_for(self, kind: EventKind) -> Optional[int]:
        return self.request_number if kind is EventKind.REQUEST else self.response_number


class Event(NamedTuple):
    entry_id: str
    kind: EventKind
    timestamp: datetime


@dataclass
class TableGroup:
    id: str
    entries: List[LogEntry] = field(default_factory=list)
    min_number: Optional[int] = None
    max_number: Optional[int] = None


def build_events(entries: List[LogEntry]) -> List[Event]:
    events: List[Event] = []
    for entry in entries:
        for kind in EventKind:
            ts = entry.timestamp_for(kind)
            if ts is not None:
                events.append(Event(entry.id, kind, ts))
    return events


def sequence_entries(entries: List[LogEntry]) -> List[LogEntry]:
    """
    Assign every request/response event its 1-based rank in the global
    chronological order and return the entries with the numbers filled in.

    Ties on the timestamp are broken by entry creation order (``seq``) and then
    request before response. All numbers are recomputed from scratch, so an
    entry inserted with an earlier timestamp renumbers everything after it.
    """
    if not entries:
        return []

    seq_by_id = {entry.id: entry.seq for entry in entries}
    events = sorted(
        build_events(entries),
        key=lambda ev: (ev.timestamp, seq_by_id[ev.entry_id], KIND_ORDER[ev.kind]),
    )
    ranks: Dict[Tuple[str, EventKind], int] = {
        (ev.entry_id, ev.kind): i for i, ev in enumerate(events, 1)
    }

    numbered = [
        replace(
            entry,
            request_number=ranks.get((entry.id, EventKind.REQUEST)),
            response_number=ranks.get((entry.id, EventKind.RESPONSE)),
        )
        for entry in entries
    ]
    logger.debug(
        "Resequenced %d entries, %d events: %s",
        len(entries),
        len(events),
        " -> ".join(f"{ev.kind.value[0]}{i}" for i, ev in enumerate(events, 1)),
    )
    return numbered


def entry_numbers(entry: LogEntry) -> List[int]:
    return [n for n in (entry.request_number, entry.response_number) if n is not None]


def entry_range(entry: LogEntry) -> Optional[Tuple[int, int]]:
    numbers = entry_numbers(entry)
    if not numbers:
        return None
    return min(numbers), max(numbers)


def _overlaps(rng: Tuple[int, int], group: TableGroup) -> bool:
    lo, hi = rng
    return not (hi < group.min_number or lo > group.max_number)


def group_entries(entries: List[LogEntry]) -> List[TableGroup]:
    """
    First-fit clustering of sequenced entries by overlapping number ranges.

    Entries are visited in ascending order of their smallest number. Each one
    joins the first existing group (in creation order) whose bounds overlap its
    range, widening the bounds; otherwise it opens a new group. Groups are never
    merged with each other afterwards, so this is not a full interval merge.
    Entries without any number get a singleton group each and sort last.
    """
    ranged = [(entry_range(e), e) for e in entries]
    numbered = sorted(((r, e) for r, e in ranged if r is not None), key=lambda p: p[0][0])
    unnumbered = [e for r, e in ranged if r is None]

    groups: List[TableGroup] = []
    for rng, entry in numbered:
        for group in groups:
            if _overlaps(rng, group):
                group.entries.append(entry)
                group.min_number = min(group.min_number, rng[0])
                group.max_number = max(group.max_number, rng[1])
                break
        else:
            groups.append(TableGroup(f"group-{len(groups) + 1}", [entry], rng[0], rng[1]))

    for entry in unnumbered:
        groups.append(TableGroup(f"group-{len(groups) + 1}", [entry]))

    for group in groups:
        group.entries.sort(key=lambda e: (entry_range(e) or (0, 0))[0])

    # stable sort keeps unnumbered groups in creation order at the end
    return sorted(
        groups,
        key=lambda g: (g.min_number is None, g.min_number if g.min_number is not None else 0),
    )
