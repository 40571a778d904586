"""Error taxonomy shared by the invoice pipeline and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class InvoiceError(Exception):
    """Base class for failures surfaced to the caller as one terminal error."""

    code = "invoice_error"
    status = 500

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def to_payload(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(InvoiceError):
    code = "validation_error"
    status = 400

    def __init__(self, message: str, stage: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message, stage)
        if status is not None:
            self.status = status


class NumberingError(InvoiceError):
    code = "numbering_error"
    status = 503


class PersistenceError(InvoiceError):
    code = "persistence_error"
    status = 500


class RenderError(InvoiceError):
    code = "render_error"
    status = 500


class UnknownError(InvoiceError):
    code = "unknown_error"
    status = 500


class ConfigError(RuntimeError):
    """Raised when the configured backends cannot work together."""


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""
