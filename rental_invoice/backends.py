"""Assemble numbering and storage backends from settings."""

from __future__ import annotations

import threading
from typing import Any, Tuple

from .config import Settings
from .errors import ConfigError, DependencyError
from .numbering import (
    CounterNumbering,
    FixedNumbering,
    LatestNumbering,
    MemoryCounter,
    NumberingService,
    RedisCounter,
    SqliteCounter,
)
from .repository import (
    InvoiceRepository,
    MemoryRepository,
    NullRepository,
    RedisRepository,
    SqliteRepository,
    connect_sqlite,
)
from .service import InvoiceService


def connect_redis(url: str) -> Any:
    try:
        import redis
    except ModuleNotFoundError as exc:
        if exc.name == "redis":
            raise DependencyError(
                "Missing dependency 'redis'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise
    return redis.Redis.from_url(url, decode_responses=True)


def check_settings(settings: Settings) -> None:
    if settings.numbering == "fixed" and settings.store != "none":
        raise ConfigError("Fixed numbering would reuse ids; it is only allowed with INVOICE_STORE=none.")
    if settings.numbering == "latest" and settings.store == "none":
        raise ConfigError("Latest-number numbering needs a store (memory, redis or sqlite).")


def build_backends(settings: Settings) -> Tuple[NumberingService, InvoiceRepository]:
    check_settings(settings)

    repository: InvoiceRepository
    counter: Any
    if settings.store == "redis":
        client = connect_redis(settings.redis_url)
        repository = RedisRepository(client)
        counter = RedisCounter(client)
    elif settings.store == "sqlite":
        connection = connect_sqlite(settings.db_path)
        lock = threading.Lock()
        repository = SqliteRepository(connection, lock)
        counter = SqliteCounter(connection, lock)
    elif settings.store == "memory":
        repository = MemoryRepository()
        counter = MemoryCounter()
    else:
        repository = NullRepository()
        counter = MemoryCounter()

    numbering: NumberingService
    if settings.numbering == "counter":
        numbering = CounterNumbering(counter)
    elif settings.numbering == "latest":
        numbering = LatestNumbering(repository)
    else:
        numbering = FixedNumbering(settings.fixed_number)
    return numbering, repository


def build_service(settings: Settings) -> InvoiceService:
    numbering, repository = build_backends(settings)
    return InvoiceService(numbering=numbering, repository=repository)
