"""Module entrypoint for running the invoice server."""

from __future__ import annotations

import sys

from .backends import build_service
from .config import HOST, PORT, Settings
from .errors import ConfigError, DependencyError
from .server import run
from .tenants import load_tenants


def main() -> None:
    settings = Settings.from_env()
    try:
        service = build_service(settings)
        tenants = load_tenants(settings.tenants_path)
        run(HOST, PORT, service, tenants)
    except (ConfigError, DependencyError) as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
