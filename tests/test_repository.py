import os
import tempfile
import unittest

from rental_invoice.errors import PersistenceError
from rental_invoice.models import Invoice, LineItem, Tenant
from rental_invoice.numbering import LatestNumbering
from rental_invoice.repository import (
    MemoryRepository,
    NullRepository,
    RedisRepository,
    SqliteRepository,
    connect_sqlite,
)

from .fakes import FakeRedis

TENANT = Tenant(name="Lucía Pérez", dni="12345678Z", address="Calle Mayor 5, Madrid")


def make_invoice(year: int, sequence: int, items=None) -> Invoice:
    number = f"{sequence:04d}"
    return Invoice.create(
        invoice_id=f"{year}-{number}",
        number=number,
        year=year,
        invoice_date="01/03/2026",
        tenant=TENANT,
        items=tuple(items or [LineItem("Alquiler marzo", 1, 1000)]),
    )


class RepositoryContract:
    def make_repository(self):
        raise NotImplementedError

    def setUp(self) -> None:
        self.repository = self.make_repository()

    def test_save_and_get_round_trip(self) -> None:
        invoice = make_invoice(2026, 1, [LineItem("Alquiler\nGaraje", 2, 50.5)])
        self.repository.save(invoice)

        self.assertEqual(self.repository.get("2026-0001"), invoice)

    def test_get_missing_returns_none(self) -> None:
        self.assertIsNone(self.repository.get("2026-9999"))

    def test_duplicate_id_is_rejected(self) -> None:
        self.repository.save(make_invoice(2026, 1))

        with self.assertRaises(PersistenceError):
            self.repository.save(make_invoice(2026, 1))

    def test_latest_sequence_is_per_year(self) -> None:
        self.assertIsNone(self.repository.latest_sequence(2026))
        for sequence in (1, 2, 7):
            self.repository.save(make_invoice(2026, sequence))
        self.repository.save(make_invoice(2025, 30))

        self.assertEqual(self.repository.latest_sequence(2026), 7)
        self.assertEqual(self.repository.latest_sequence(2025), 30)

    def test_list_invoices_for_year_is_ordered(self) -> None:
        for sequence in (3, 1, 2):
            self.repository.save(make_invoice(2026, sequence))

        ids = [invoice.id for invoice in self.repository.list_invoices(2026)]

        self.assertEqual(ids, ["2026-0001", "2026-0002", "2026-0003"])

    def test_latest_numbering_is_gap_free_when_sequential(self) -> None:
        numbering = LatestNumbering(self.repository)
        issued_ids = []
        for _ in range(5):
            issued = numbering.next_number(2026)
            self.repository.save(make_invoice(2026, issued.sequence))
            issued_ids.append(issued.id)

        self.assertEqual(issued_ids, [f"2026-{n:04d}" for n in range(1, 6)])


class MemoryRepositoryTests(RepositoryContract, unittest.TestCase):
    def make_repository(self):
        return MemoryRepository()


class RedisRepositoryTests(RepositoryContract, unittest.TestCase):
    def make_repository(self):
        self.client = FakeRedis()
        return RedisRepository(self.client)

    def test_record_is_stored_as_json_under_invoice_key(self) -> None:
        self.repository.save(make_invoice(2026, 4))

        self.assertIn("invoice:2026-0004", self.client.values)
        self.assertIn('"tenant": {"name": "Lucía Pérez"', self.client.values["invoice:2026-0004"])

    def test_store_failure_raises_persistence_error(self) -> None:
        self.client.fail = True

        with self.assertRaises(PersistenceError):
            self.repository.save(make_invoice(2026, 1))

    def test_index_failure_removes_the_record(self) -> None:
        self.client.fail_once.add("zadd")

        with self.assertRaises(PersistenceError):
            self.repository.save(make_invoice(2026, 1))

        self.assertNotIn("invoice:2026-0001", self.client.values)
        self.assertIsNone(self.repository.get("2026-0001"))

    def test_numbering_recovers_after_index_failure(self) -> None:
        numbering = LatestNumbering(self.repository)
        self.client.fail_once.add("zadd")
        with self.assertRaises(PersistenceError):
            self.repository.save(make_invoice(2026, numbering.next_number(2026).sequence))

        issued_ids = []
        for _ in range(3):
            issued = numbering.next_number(2026)
            self.repository.save(make_invoice(2026, issued.sequence))
            issued_ids.append(issued.id)

        self.assertEqual(issued_ids, ["2026-0002", "2026-0003", "2026-0004"])
        self.assertEqual(self.repository.latest_sequence(2026), 4)

    def test_failed_cleanup_still_raises_persistence_error(self) -> None:
        self.client.fail_once.update({"zadd", "delete"})

        with self.assertRaises(PersistenceError) as ctx:
            self.repository.save(make_invoice(2026, 1))

        self.assertIn("removing it also failed", str(ctx.exception))


class SqliteRepositoryTests(RepositoryContract, unittest.TestCase):
    def make_repository(self):
        self.connection = connect_sqlite(":memory:")
        return SqliteRepository(self.connection)

    def tearDown(self) -> None:
        self.connection.close()

    def test_tenant_and_items_are_stored_as_json(self) -> None:
        self.repository.save(make_invoice(2026, 1))

        row = self.connection.execute("SELECT tenant, items FROM invoices WHERE id = '2026-0001'").fetchone()

        self.assertIn('"dni": "12345678Z"', row["tenant"])
        self.assertIn('"description": "Alquiler marzo"', row["items"])

    def test_closed_connection_raises_persistence_error(self) -> None:
        self.connection.close()

        with self.assertRaises(PersistenceError):
            self.repository.save(make_invoice(2026, 1))


class SqliteFileTests(unittest.TestCase):
    def test_records_survive_reconnect(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "data", "invoices.db")
            first = connect_sqlite(path)
            SqliteRepository(first).save(make_invoice(2026, 1))
            first.close()

            second = connect_sqlite(path)
            try:
                self.assertEqual(SqliteRepository(second).latest_sequence(2026), 1)
            finally:
                second.close()


class NullRepositoryTests(unittest.TestCase):
    def test_keeps_nothing(self) -> None:
        repository = NullRepository()
        repository.save(make_invoice(2026, 1))

        self.assertIsNone(repository.get("2026-0001"))
        self.assertIsNone(repository.latest_sequence(2026))
        self.assertEqual(repository.list_invoices(), [])


if __name__ == "__main__":
    unittest.main()
