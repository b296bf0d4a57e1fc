"""Time-ordered numeric identifiers for ledger, schedule and queue rows."""

from __future__ import annotations

import itertools
import threading
import time
from collections.abc import Callable

MAX_MACHINE_ID = 999
ID_LENGTH = 26


class UniqueIdGenerator:
    """Generate 26-digit ids: epoch ms, machine id, sub-ms nanos, sequence.

    Ids produced by the same generator sort lexicographically in creation
    order at millisecond resolution. The machine id keeps ids from
    different processes apart and must be unique per running process.
    """

    def __init__(
        self,
        machine_id: int,
        *,
        time_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        if not 0 <= machine_id <= MAX_MACHINE_ID:
            msg = f"machine_id must be between 0 and {MAX_MACHINE_ID}."
            raise ValueError(msg)
        self._machine_id = machine_id
        self._time_ns = time_ns
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    @property
    def machine_id(self) -> int:
        return self._machine_id

    def generate(self) -> str:
        with self._lock:
            sequence = next(self._sequence) % 10_000
            now_ns = self._time_ns()
        millis, sub_millis_ns = divmod(now_ns, 1_000_000)
        return (
            f"{millis:013d}"
            f"{self._machine_id:03d}"
            f"{sub_millis_ns:06d}"
            f"{sequence:04d}"
        )
