"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_choice(name: str, default: str, choices: tuple) -> str:
    raw = os.getenv(name, "").strip().lower()
    return raw if raw in choices else default


NUMBERING_CHOICES = ("fixed", "counter", "latest")
STORE_CHOICES = ("none", "memory", "redis", "sqlite")

HOST = os.getenv("INVOICE_HOST", "0.0.0.0")
PORT = env_int("INVOICE_PORT", 8080, minimum=0)
MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 1024 * 1024, minimum=1024)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 128, minimum=1)
MAX_INFLIGHT = env_int("INVOICE_MAX_INFLIGHT", 16, minimum=1)
QUEUE_TIMEOUT_MS = env_int("INVOICE_QUEUE_TIMEOUT_MS", 5000, minimum=0)


@dataclass(frozen=True)
class Settings:
    numbering: str = "fixed"
    store: str = "none"
    redis_url: str = "redis://localhost:6379/0"
    db_path: str = "invoices.db"
    fixed_number: int = 1
    tenants_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            numbering=env_choice("INVOICE_NUMBERING", "fixed", NUMBERING_CHOICES),
            store=env_choice("INVOICE_STORE", "none", STORE_CHOICES),
            redis_url=os.getenv("INVOICE_REDIS_URL", "redis://localhost:6379/0"),
            db_path=os.getenv("INVOICE_DB_PATH", "invoices.db"),
            fixed_number=env_int("INVOICE_FIXED_NUMBER", 1, minimum=1),
            tenants_path=os.getenv("INVOICE_TENANTS_PATH") or None,
        )
