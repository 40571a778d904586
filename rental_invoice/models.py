"""Invoice domain records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .taxes import InvoiceTotals, compute_totals


@dataclass(frozen=True)
class Tenant:
    name: str
    dni: str
    address: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "dni": self.dni, "address": self.address}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tenant":
        return cls(
            name=str(data.get("name", "")),
            dni=str(data.get("dni", "")),
            address=str(data.get("address", "")),
        )


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: float
    price: float

    @property
    def amount(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "quantity": self.quantity, "price": self.price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        return cls(
            description=str(data.get("description", "")),
            quantity=float(data.get("quantity", 0)),
            price=float(data.get("price", 0)),
        )


@dataclass(frozen=True)
class InvoiceRequest:
    tenant: Tenant
    invoice_date: str
    items: Tuple[LineItem, ...]
    invoice_number: Optional[str] = None


@dataclass(frozen=True)
class Invoice:
    id: str
    number: str
    year: int
    invoice_date: str
    tenant: Tenant
    items: Tuple[LineItem, ...]
    subtotal: float
    iva: float
    irpf: float
    total: float
    reference: Optional[str] = None

    @classmethod
    def create(
        cls,
        invoice_id: str,
        number: str,
        year: int,
        invoice_date: str,
        tenant: Tenant,
        items: Tuple[LineItem, ...],
        reference: Optional[str] = None,
        totals: Optional[InvoiceTotals] = None,
    ) -> "Invoice":
        """Build an invoice whose amounts are derived from ``items``.

        ``totals`` may be passed when they were already computed for the same
        items.
        """
        totals = totals or compute_totals(items)
        return cls(
            id=invoice_id,
            number=number,
            year=year,
            invoice_date=invoice_date,
            tenant=tenant,
            items=tuple(items),
            subtotal=totals.subtotal,
            iva=totals.iva,
            irpf=totals.irpf,
            total=totals.total,
            reference=reference,
        )

    @property
    def sequence(self) -> int:
        return int(self.number)

    @property
    def display_number(self) -> str:
        return self.reference or self.number

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "year": self.year,
            "invoiceDate": self.invoice_date,
            "tenant": self.tenant.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "iva": self.iva,
            "irpf": self.irpf,
            "total": self.total,
            "reference": self.reference,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Invoice":
        items: List[LineItem] = [LineItem.from_dict(item) for item in record.get("items", [])]
        return cls(
            id=str(record["id"]),
            number=str(record["number"]),
            year=int(record["year"]),
            invoice_date=str(record.get("invoiceDate", "")),
            tenant=Tenant.from_dict(record.get("tenant", {}) or {}),
            items=tuple(items),
            subtotal=float(record["subtotal"]),
            iva=float(record["iva"]),
            irpf=float(record["irpf"]),
            total=float(record["total"]),
            reference=record.get("reference"),
        )
