import re
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

REQUEST_MARKER = "request journal entry created"
RESPONSE_MARKER = "response journal entry created"

# M/D/YYYY h:mm:ss.mmm AM|PM
RX_TIMESTAMP = re.compile(
    r"(\d{1,2})/(\d{1,2})/(\d{4}) (\d{1,2}):(\d{2}):(\d{2})\.(\d{3}) ([AP]M)",
    re.IGNORECASE | re.ASCII,
)


@dataclass(frozen=True)
class ParsedEntry:
    raw_text: str
    first_column: str
    has_request: bool = False
    has_response: bool = False
    request_timestamp: Optional[datetime] = None
    response_timestamp: Optional[datetime] = None


def parse_timestamp(line: str) -> Optional[datetime]:
    """
    Find a timestamp in one line and convert it to a 24-hour datetime.
    Returns None when nothing matches or the components are out of range.
    """
    m = RX_TIMESTAMP.search(line)
    if not m:
        return None
    month, day, year, hours, minutes, seconds, millis = (int(g) for g in m.groups()[:7])
    meridiem = m.group(8).upper()
    if hours > 12:
        logger.debug("Invalid 12-hour clock value %r", m.group(0))
        return None
    if meridiem == "PM" and hours < 12:
        hours += 12
    elif meridiem == "AM" and hours == 12:
        hours = 0
    try:
        return datetime(year, month, day, hours, minutes, seconds, millis * 1000)
    except ValueError as e:
        logger.debug("Invalid timestamp %r: %s", m.group(0), e)
        return None


def parse_entry(text: str) -> ParsedEntry:
    lines = [line.rstrip("\r") for line in text.split("\n") if line.strip()]
    first_line = lines[0].strip() if lines else ""

    has_request = has_response = False
    request_ts: Optional[datetime] = None
    response_ts: Optional[datetime] = None

    for line in lines:
        low = line.lower()
        if REQUEST_MARKER in low:
            has_request = True
            ts = parse_timestamp(line)
            if ts:
                request_ts = ts
                logger.debug("Parsed request timestamp %s from line: %s", ts, line)
        if RESPONSE_MARKER in low:
            has_response = True
            ts = parse_timestamp(line)
            if ts:
                response_ts = ts
                logger.debug("Parsed response timestamp %s from line: %s", ts, line)

    return ParsedEntry(
        raw_text=text,
        first_column=first_line,
        has_request=has_request,
        has_response=has_response,
        request_timestamp=request_ts,
        response_timestamp=response_ts,
    )


def format_timestamp(ts: datetime) -> str:
    """12-hour clock with milliseconds, e.g. ``01:00:01.250 PM``."""
    return f"{ts:%I:%M:%S}.{ts.microsecond // 1000:03d} {ts:%p}"
