"""Read-only reference list of known tenants."""

from __future__ import annotations

import json
from typing import List, Optional

from .errors import ConfigError
from .models import Tenant


def load_tenants(path: Optional[str]) -> List[Tenant]:
    if not path:
        return []
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read tenant list {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Tenant list {path} is not valid JSON: {exc.msg}") from exc

    if not isinstance(raw, list):
        raise ConfigError(f"Tenant list {path} must be a JSON array.")

    tenants = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict) or not all(isinstance(entry.get(k), str) for k in ("name", "dni", "address")):
            raise ConfigError(f"Tenant #{index} in {path} needs string name, dni and address.")
        tenants.append(Tenant.from_dict(entry))
    return tenants
