from datetime import datetime, timedelta
from typing import Optional

import pytest

from sequencer import LogEntry

BASE = datetime(2025, 1, 1, 1, 0, 0)


def make_entry(seq: int, request: Optional[int] = None, response: Optional[int] = None, label: str = "") -> LogEntry:
    """Entry whose timestamps are BASE plus the given number of seconds."""
    return LogEntry(
        id=f"entry-{seq}",
        seq=seq,
        created_at=BASE,
        raw_text=label or f"entry {seq}",
        first_column=label or f"entry {seq}",
        has_request=request is not None,
        has_response=response is not None,
        request_timestamp=None if request is None else BASE + timedelta(seconds=request),
        response_timestamp=None if response is None else BASE + timedelta(seconds=response),
    )


@pytest.fixture
def entry_factory():
    return make_entry
