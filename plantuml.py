import zlib
import logging
from typing import List

import requests

from journal_parser import format_timestamp
from sequencer import EventKind, LogEntry

logger = logging.getLogger(__name__)

CLIENT = "Client"


# PlantUML text encoding: raw deflate + PlantUML base64 alphabet
def encode_plantuml(text: str) -> str:
    compressed = zlib.compress(text.encode("utf-8"))[2:-4]  # strip zlib header and checksum
    return encode64(compressed)


def encode6bit(b: int) -> str:
    if b < 10:
        return chr(48 + b)
    b -= 10
    if b < 26:
        return chr(65 + b)
    b -= 26
    if b < 26:
        return chr(97 + b)
    b -= 26
    if b == 0:
        return "-"
    if b == 1:
        return "_"
    return "?"


def append3bytes(b1: int, b2: int, b3: int) -> str:
    return "".join(
        encode6bit(c)
        for c in (
            b1 >> 2,
            ((b1 & 0x3) << 4) | (b2 >> 4),
            ((b2 & 0xF) << 2) | (b3 >> 6),
            b3 & 0x3F,
        )
    )


def encode64(data: bytes) -> str:
    padded = data + b"\x00" * (-len(data) % 3)
    return "".join(append3bytes(*padded[i:i + 3]) for i in range(0, len(padded), 3))


def _alias(entry: LogEntry) -> str:
    return "E" + "".join(ch if ch.isalnum() else "_" for ch in entry.id)


def _quote(text: str) -> str:
    return (text or "(empty)").replace('"', "'")[:80]


def build_plantuml(entries: List[LogEntry], title: str = "Journal sequence") -> str:
    """
    Render the global request/response order as a PlantUML sequence diagram.

    Every numbered entry becomes a participant; requests are drawn as
    ``Client -> entry`` and responses as ``entry --> Client``, in rank order.
    """
    numbered = [e for e in entries if e.request_number is not None or e.response_number is not None]
    steps = []
    for entry in numbered:
        for kind in EventKind:
            number = entry.number_for(kind)
            if number is not None:
                steps.append((number, kind, entry))
    steps.sort(key=lambda s: s[0])

    lines = ["@startuml", f"title {title}", f'actor "{CLIENT}" as {CLIENT}']
    for entry in numbered:
        lines.append(f'participant "{_quote(entry.first_column)}" as {_alias(entry)}')
    lines.append("")
    for number, kind, entry in steps:
        at = format_timestamp(entry.timestamp_for(kind))
        if kind is EventKind.REQUEST:
            lines.append(f"{CLIENT} -> {_alias(entry)}: #{number} request\\n{at}")
        else:
            lines.append(f"{_alias(entry)} --> {CLIENT}: #{number} response\\n{at}")
    unnumbered = len(entries) - len(numbered)
    if unnumbered:
        lines.append("")
        lines.append(f"' {unnumbered} entries without timestamps are not shown")
    lines.append("@enduml")
    return "\n".join(lines)


def diagram_url(code: str, server: str, fmt: str = "svg") -> str:
    return f"{server.rstrip('/')}/{fmt}/{encode_plantuml(code)}"


def fetch_diagram(url: str, timeout: float = 10.0) -> bytes:
    """Download a rendered diagram from the PlantUML server."""
    logger.info("Fetching diagram from %s", url[:80])
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content
