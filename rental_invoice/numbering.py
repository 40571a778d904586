"""Per-year sequential invoice numbering.

Every strategy satisfies the same contract: ``next_number(year)`` returns the
next identifier for ``year`` as an :class:`IssuedNumber`. Issued numbers are
never handed back, so a submission that fails after numbering leaves a gap.

Only :class:`CounterNumbering` over an atomic counter is safe across
processes. :class:`LatestNumbering` reads the highest persisted number and
adds one; it serializes callers inside one process, but two processes sharing
a store can read the same latest number before either one saves.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from .errors import NumberingError, PersistenceError

NUMBER_WIDTH = 4
COUNTER_KEY_PREFIX = "invoice_counter"


@dataclass(frozen=True)
class IssuedNumber:
    year: int
    sequence: int
    number: str
    id: str


def format_number(sequence: int) -> str:
    return f"{sequence:0{NUMBER_WIDTH}d}"


def format_invoice_id(year: int, sequence: int) -> str:
    return f"{year}-{format_number(sequence)}"


def issued_number(year: int, sequence: Any) -> IssuedNumber:
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise NumberingError(f"Counter returned a non-integer value: {sequence!r}.")
    if sequence < 1:
        raise NumberingError(f"Counter returned an invalid sequence: {sequence}.")
    return IssuedNumber(
        year=year,
        sequence=sequence,
        number=format_number(sequence),
        id=format_invoice_id(year, sequence),
    )


class NumberingService(Protocol):
    def next_number(self, year: int) -> IssuedNumber:
        ...


class Counter(Protocol):
    def increment(self, year: int) -> int:
        ...


class SequenceSource(Protocol):
    def latest_sequence(self, year: int) -> Optional[int]:
        ...


class FixedNumbering:
    """Always issues the same number. Only valid without persistence."""

    def __init__(self, sequence: int = 1) -> None:
        self.sequence = sequence

    def next_number(self, year: int) -> IssuedNumber:
        return issued_number(year, self.sequence)


class CounterNumbering:
    def __init__(self, counter: Counter) -> None:
        self.counter = counter

    def next_number(self, year: int) -> IssuedNumber:
        try:
            value = self.counter.increment(year)
        except NumberingError:
            raise
        except Exception as exc:
            raise NumberingError(f"Invoice counter unavailable: {exc}") from exc
        return issued_number(year, value)


class LatestNumbering:
    """Highest stored number plus one.

    Numbers handed out by this process are remembered per year, so one whose
    invoice failed to save is skipped rather than issued again.
    """

    def __init__(self, source: SequenceSource) -> None:
        self.source = source
        self._issued: Dict[int, int] = {}
        self._lock = threading.Lock()

    def next_number(self, year: int) -> IssuedNumber:
        try:
            latest = self.source.latest_sequence(year)
        except (NumberingError, PersistenceError) as exc:
            raise NumberingError(f"Could not read the latest invoice number: {exc}") from exc
        except Exception as exc:
            raise NumberingError(f"Invoice store unavailable: {exc}") from exc
        if latest is not None and (isinstance(latest, bool) or not isinstance(latest, int)):
            raise NumberingError(f"Invoice store returned a non-integer sequence: {latest!r}.")
        with self._lock:
            sequence = max(latest or 0, self._issued.get(year, 0)) + 1
            self._issued[year] = sequence
        return issued_number(year, sequence)


class MemoryCounter:
    """Process-local counter. Lost on restart."""

    def __init__(self, initial: Optional[Dict[int, int]] = None) -> None:
        self._values: Dict[int, int] = dict(initial or {})
        self._lock = threading.Lock()

    def increment(self, year: int) -> int:
        with self._lock:
            value = self._values.get(year, 0) + 1
            self._values[year] = value
            return value


class RedisCounter:
    """One ``INCR`` key per year; the increment is atomic on the server."""

    def __init__(self, client: Any, prefix: str = COUNTER_KEY_PREFIX) -> None:
        self.client = client
        self.prefix = prefix

    def key(self, year: int) -> str:
        return f"{self.prefix}:{year}"

    def increment(self, year: int) -> int:
        raw = self.client.incr(self.key(year))
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise NumberingError(f"Counter returned a non-integer value: {raw!r}.") from exc


class SqliteCounter:
    """Counter table updated inside an immediate (write-locking) transaction."""

    def __init__(self, connection: sqlite3.Connection, lock: Optional[threading.Lock] = None) -> None:
        self.connection = connection
        self.lock = lock or threading.Lock()
        with self.lock:
            self.connection.execute(
                "CREATE TABLE IF NOT EXISTS invoice_counters ("
                " year INTEGER PRIMARY KEY,"
                " value INTEGER NOT NULL"
                ")"
            )
            self.connection.commit()

    def increment(self, year: int) -> int:
        with self.lock:
            cursor = self.connection.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                cursor.execute(
                    "INSERT OR IGNORE INTO invoice_counters (year, value) VALUES (?, 0)",
                    (year,),
                )
                cursor.execute(
                    "UPDATE invoice_counters SET value = value + 1 WHERE year = ?",
                    (year,),
                )
                row = cursor.execute(
                    "SELECT value FROM invoice_counters WHERE year = ?",
                    (year,),
                ).fetchone()
                cursor.execute("COMMIT")
            except sqlite3.Error:
                if self.connection.in_transaction:
                    self.connection.rollback()
                raise
            finally:
                cursor.close()
        return int(row[0])
