"""Request body checks for invoice submissions."""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .models import InvoiceRequest, LineItem, Tenant
from .pagination import fits_on_page, max_single_line_items

MANUAL_NUMBER_RE = re.compile(r"^\d{2}/\d{2}$")
YEAR_RE = re.compile(r"^\d{4}$")
TENANT_FIELDS = ("name", "dni", "address")


def decode_json_body(body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ValidationError("Body must be UTF-8 encoded JSON.") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc

    if not isinstance(payload, dict):
        raise ValidationError("JSON root must be an object.")
    return payload


def parse_number(value: Any, field: str) -> float:
    """Accept JSON numbers and numeric strings (as sent by form inputs)."""
    if isinstance(value, bool):
        raise ValidationError(f"'{field}' must be a number.")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise ValidationError(f"'{field}' must be a number.") from exc
    else:
        raise ValidationError(f"'{field}' must be a number.")

    if not math.isfinite(number):
        raise ValidationError(f"'{field}' must be a finite number.")
    return number


def _required_text(container: Dict[str, Any], key: str, field: str) -> str:
    value = container.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field}' is required.")
    return value.strip()


def parse_tenant(raw: Any) -> Tenant:
    if not isinstance(raw, dict):
        raise ValidationError("'tenant' must be an object with name, dni and address.")
    values = {key: _required_text(raw, key, f"tenant.{key}") for key in TENANT_FIELDS}
    return Tenant(**values)


def parse_item(raw: Any, index: int) -> LineItem:
    prefix = f"items[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"'{prefix}' must be an object.")

    description = raw.get("description", "")
    if description is None:
        description = ""
    if not isinstance(description, str):
        raise ValidationError(f"'{prefix}.description' must be a string.")

    quantity = parse_number(raw.get("quantity"), f"{prefix}.quantity")
    if quantity < 0:
        raise ValidationError(f"'{prefix}.quantity' cannot be negative.")
    price = parse_number(raw.get("price"), f"{prefix}.price")
    return LineItem(description=description, quantity=quantity, price=price)


def parse_items(raw: Any) -> List[LineItem]:
    if not isinstance(raw, list):
        raise ValidationError("'items' must be an array.")
    if not raw:
        raise ValidationError("At least one item is required.")

    items = [parse_item(entry, index) for index, entry in enumerate(raw)]
    if not fits_on_page([item.description for item in items]):
        raise ValidationError(
            "Items do not fit on the invoice page "
            f"(at most {max_single_line_items()} single-line items).",
            status=413,
        )
    return items


def parse_invoice_request(payload: Dict[str, Any]) -> InvoiceRequest:
    tenant = parse_tenant(payload.get("tenant"))
    invoice_date = _required_text(payload, "invoiceDate", "invoiceDate")

    invoice_number = payload.get("invoiceNumber")
    if invoice_number in (None, ""):
        invoice_number = None
    elif not isinstance(invoice_number, str) or not MANUAL_NUMBER_RE.match(invoice_number.strip()):
        raise ValidationError("'invoiceNumber' must use the YY/MM format.")
    else:
        invoice_number = invoice_number.strip()

    items = parse_items(payload.get("items"))
    return InvoiceRequest(
        tenant=tenant,
        invoice_date=invoice_date,
        items=tuple(items),
        invoice_number=invoice_number,
    )


def parse_year(raw: Optional[str]) -> Optional[int]:
    """Parse a ``year`` query parameter; blank means "not given"."""
    if raw is None or not raw.strip():
        return None
    if not YEAR_RE.match(raw.strip()):
        raise ValidationError(f"Invalid year: {raw!r}. Expected four digits.")
    return int(raw.strip())
