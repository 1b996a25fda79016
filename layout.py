"""
Diagram geometry for the grouped journal tables and the connectors between
their number labels.

The layout is computed rather than measured: each group becomes a table with a
title, a header row and one row per entry, stacked top to bottom. Every request
or response number gets a label at the centre of its cell, and the resolver
links labels whose numbers follow each other.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sequencer import EventKind, LogEntry, TableGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Geometry:
    width: int = 900
    number_column: int = 100
    title_height: int = 40
    header_height: int = 48
    row_height: int = 64
    group_gap: int = 32
    min_label_column: int = 120

    @property
    def label_column(self) -> int:
        return max(self.width - 2 * self.number_column, self.min_label_column)

    def column_centre(self, kind: EventKind) -> float:
        offset = 0.5 if kind is EventKind.REQUEST else 1.5
        return self.label_column + offset * self.number_column

    @property
    def total_width(self) -> int:
        return self.label_column + 2 * self.number_column


@dataclass(frozen=True)
class NumberLabel:
    number: int
    kind: EventKind
    entry_id: str
    x: float
    y: float


@dataclass
class RowBox:
    entry: LogEntry
    top: float
    bottom: float

    @property
    def centre(self) -> float:
        return (self.top + self.bottom) / 2


@dataclass
class TableBox:
    group: TableGroup
    title: str
    top: float
    header_top: float
    bottom: float
    rows: List[RowBox] = field(default_factory=list)


@dataclass
class Layout:
    geometry: Geometry
    tables: List[TableBox] = field(default_factory=list)
    labels: List[NumberLabel] = field(default_factory=list)
    height: float = 0.0


def compute_layout(groups: List[TableGroup], geometry: Optional[Geometry] = None) -> Layout:
    geometry = geometry or Geometry()
    result = Layout(geometry)
    y = 0.0
    for index, group in enumerate(groups, 1):
        table = TableBox(group, f"Set {index}", top=y, header_top=y + geometry.title_height, bottom=0.0)
        y = table.header_top + geometry.header_height
        for entry in group.entries:
            row = RowBox(entry, y, y + geometry.row_height)
            table.rows.append(row)
            for kind in EventKind:
                number = entry.number_for(kind)
                if number is not None:
                    result.labels.append(
                        NumberLabel(number, kind, entry.id, geometry.column_centre(kind), row.centre)
                    )
            y = row.bottom
        table.bottom = y
        result.tables.append(table)
        y += geometry.group_gap
    result.height = max(y - geometry.group_gap, 0.0)
    return result


# ---------------- connectors ----------------

class ConnectorStyle(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    MIXED = "mixed"


class ConnectorPolicy(str, Enum):
    # only n -> n+1
    CONSECUTIVE = "consecutive"
    # every neighbour in the sorted sequence, gaps included
    ADJACENT = "adjacent"


@dataclass(frozen=True)
class Connector:
    start: NumberLabel
    end: NumberLabel
    style: ConnectorStyle


def classify_connector(a: NumberLabel, b: NumberLabel) -> ConnectorStyle:
    if a.kind is b.kind:
        return ConnectorStyle.REQUEST if a.kind is EventKind.REQUEST else ConnectorStyle.RESPONSE
    return ConnectorStyle.MIXED


def resolve_connectors(labels: List[NumberLabel], policy=ConnectorPolicy.CONSECUTIVE) -> List[Connector]:
    policy = ConnectorPolicy(policy)
    ordered = sorted(labels, key=lambda label: label.number)
    connectors: List[Connector] = []
    for current, nxt in zip(ordered, ordered[1:]):
        if policy is ConnectorPolicy.CONSECUTIVE and nxt.number != current.number + 1:
            continue
        connectors.append(Connector(current, nxt, classify_connector(current, nxt)))
    logger.debug(
        "Number sequence: %s",
        " -> ".join(f"{label.kind.value[0]}{label.number}" for label in ordered),
    )
    return connectors
