"""Interchangeable stores for finalized invoice records."""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .errors import PersistenceError
from .models import Invoice

INVOICE_KEY_PREFIX = "invoice"
YEAR_INDEX_PREFIX = "invoices"


class InvoiceRepository(Protocol):
    def save(self, invoice: Invoice) -> None:
        ...

    def get(self, invoice_id: str) -> Optional[Invoice]:
        ...

    def latest_sequence(self, year: int) -> Optional[int]:
        ...

    def list_invoices(self, year: Optional[int] = None) -> List[Invoice]:
        ...


class NullRepository:
    """Keeps nothing; used when persistence is not configured."""

    def save(self, invoice: Invoice) -> None:
        return None

    def get(self, invoice_id: str) -> Optional[Invoice]:
        return None

    def latest_sequence(self, year: int) -> Optional[int]:
        return None

    def list_invoices(self, year: Optional[int] = None) -> List[Invoice]:
        return []


class MemoryRepository:
    def __init__(self) -> None:
        self._invoices: Dict[str, Invoice] = {}
        self._lock = threading.Lock()

    def save(self, invoice: Invoice) -> None:
        with self._lock:
            if invoice.id in self._invoices:
                raise PersistenceError(f"Invoice {invoice.id} already exists.")
            self._invoices[invoice.id] = invoice

    def get(self, invoice_id: str) -> Optional[Invoice]:
        with self._lock:
            return self._invoices.get(invoice_id)

    def latest_sequence(self, year: int) -> Optional[int]:
        with self._lock:
            sequences = [inv.sequence for inv in self._invoices.values() if inv.year == year]
        return max(sequences) if sequences else None

    def list_invoices(self, year: Optional[int] = None) -> List[Invoice]:
        with self._lock:
            invoices = list(self._invoices.values())
        if year is not None:
            invoices = [inv for inv in invoices if inv.year == year]
        return sorted(invoices, key=lambda inv: (inv.year, inv.sequence))


class RedisRepository:
    """Stores each invoice as JSON under ``invoice:{id}``.

    A sorted set per year (``invoices:{year}``, scored by sequence) answers
    latest-number queries without scanning keys.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    @staticmethod
    def invoice_key(invoice_id: str) -> str:
        return f"{INVOICE_KEY_PREFIX}:{invoice_id}"

    @staticmethod
    def year_key(year: int) -> str:
        return f"{YEAR_INDEX_PREFIX}:{year}"

    def save(self, invoice: Invoice) -> None:
        body = json.dumps(invoice.to_record(), ensure_ascii=False)
        try:
            stored = self.client.set(self.invoice_key(invoice.id), body, nx=True)
        except Exception as exc:
            raise PersistenceError(f"Could not save invoice {invoice.id}: {exc}") from exc
        if not stored:
            raise PersistenceError(f"Invoice {invoice.id} already exists.")
        try:
            self.client.zadd(self.year_key(invoice.year), {invoice.id: invoice.sequence})
        except Exception as exc:
            # A record must never exist outside its year index.
            try:
                self.client.delete(self.invoice_key(invoice.id))
            except Exception as cleanup_exc:
                raise PersistenceError(
                    f"Could not index invoice {invoice.id}: {exc}; removing it also failed: {cleanup_exc}"
                ) from exc
            raise PersistenceError(f"Could not index invoice {invoice.id}: {exc}") from exc

    def get(self, invoice_id: str) -> Optional[Invoice]:
        try:
            raw = self.client.get(self.invoice_key(invoice_id))
        except Exception as exc:
            raise PersistenceError(f"Could not load invoice {invoice_id}: {exc}") from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return Invoice.from_record(json.loads(raw))

    def latest_sequence(self, year: int) -> Optional[int]:
        try:
            top = self.client.zrevrange(self.year_key(year), 0, 0, withscores=True)
        except Exception as exc:
            raise PersistenceError(f"Could not read invoices for {year}: {exc}") from exc
        if not top:
            return None
        _, score = top[0]
        return int(score)

    def list_invoices(self, year: Optional[int] = None) -> List[Invoice]:
        if year is None:
            raise PersistenceError("Listing invoices from the key-value store requires a year.")
        try:
            ids = self.client.zrange(self.year_key(year), 0, -1)
        except Exception as exc:
            raise PersistenceError(f"Could not read invoices for {year}: {exc}") from exc
        invoices = []
        for invoice_id in ids:
            if isinstance(invoice_id, bytes):
                invoice_id = invoice_id.decode("utf-8")
            invoice = self.get(invoice_id)
            if invoice is not None:
                invoices.append(invoice)
        return invoices


def connect_sqlite(db_path: str) -> sqlite3.Connection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
    connection.row_factory = sqlite3.Row
    return connection


class SqliteRepository:
    """Relational store: one ``invoices`` row per invoice, keyed by id."""

    def __init__(self, connection: sqlite3.Connection, lock: Optional[threading.Lock] = None) -> None:
        self.connection = connection
        self.lock = lock or threading.Lock()
        self._create_tables()

    def _create_tables(self) -> None:
        with self.lock:
            self.connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS invoices (
                    id           TEXT PRIMARY KEY,
                    number       TEXT NOT NULL,
                    sequence     INTEGER NOT NULL,
                    year         INTEGER NOT NULL,
                    invoice_date TEXT NOT NULL,
                    reference    TEXT,
                    tenant       TEXT NOT NULL,
                    items        TEXT NOT NULL,
                    subtotal     REAL NOT NULL,
                    iva          REAL NOT NULL,
                    irpf         REAL NOT NULL,
                    total        REAL NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_invoices_year ON invoices(year, sequence);
                """
            )

    def save(self, invoice: Invoice) -> None:
        record = invoice.to_record()
        try:
            with self.lock:
                self.connection.execute(
                    "INSERT INTO invoices (id, number, sequence, year, invoice_date, reference,"
                    " tenant, items, subtotal, iva, irpf, total)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        invoice.id,
                        invoice.number,
                        invoice.sequence,
                        invoice.year,
                        invoice.invoice_date,
                        invoice.reference,
                        json.dumps(record["tenant"], ensure_ascii=False),
                        json.dumps(record["items"], ensure_ascii=False),
                        invoice.subtotal,
                        invoice.iva,
                        invoice.irpf,
                        invoice.total,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise PersistenceError(f"Invoice {invoice.id} already exists.") from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not save invoice {invoice.id}: {exc}") from exc

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Invoice:
        data = dict(row)
        data["invoiceDate"] = data.pop("invoice_date")
        data["tenant"] = json.loads(data["tenant"])
        data["items"] = json.loads(data["items"])
        return Invoice.from_record(data)

    def get(self, invoice_id: str) -> Optional[Invoice]:
        try:
            with self.lock:
                row = self.connection.execute(
                    "SELECT * FROM invoices WHERE id = ?", (invoice_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not load invoice {invoice_id}: {exc}") from exc
        return self._from_row(row) if row else None

    def latest_sequence(self, year: int) -> Optional[int]:
        try:
            with self.lock:
                row = self.connection.execute(
                    "SELECT MAX(sequence) FROM invoices WHERE year = ?", (year,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read invoices for {year}: {exc}") from exc
        if row is None or row[0] is None:
            return None
        return int(row[0])

    def list_invoices(self, year: Optional[int] = None) -> List[Invoice]:
        query = "SELECT * FROM invoices"
        params: tuple = ()
        if year is not None:
            query += " WHERE year = ?"
            params = (year,)
        query += " ORDER BY year, sequence"
        try:
            with self.lock:
                rows = self.connection.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not list invoices: {exc}") from exc
        return [self._from_row(row) for row in rows]
