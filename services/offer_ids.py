"""
Offer id generators, one per origin.
Origins carry distinct prefixes, so ids from different origins cannot collide inside
one decision without any registry.
"""
from __future__ import annotations

import secrets
import string
import time
from typing import Callable, Literal

OfferOrigin = Literal["manual", "import", "primary-migration", "legacy-migration"]

_BASE36 = string.digits + string.ascii_lowercase


def _random_base36(length: int = 6) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def _manual_id() -> str:
    return f"appr-{_epoch_millis()}-{_random_base36()}"


def _import_id() -> str:
    return f"imp-{_epoch_millis()}-{_random_base36()}"


def _primary_migration_id(record_id: str) -> str:
    return f"primary-{record_id}"


def _legacy_migration_id(index: int) -> str:
    return f"migrated-{index}"


_GENERATORS: dict[str, Callable[..., str]] = {
    "manual": _manual_id,
    "import": _import_id,
    "primary-migration": _primary_migration_id,
    "legacy-migration": _legacy_migration_id,
}


def offer_id_factory(origin: OfferOrigin) -> Callable[..., str]:
    """
    Return the id generator for an origin:
      manual()                      -> appr-1718000000000-k3x9q2
      import()                      -> imp-1718000000000-a81zzp
      primary-migration(record_id)  -> primary-dec-1a2b3c
      legacy-migration(index)       -> migrated-0
    """
    try:
        return _GENERATORS[origin]
    except KeyError:
        raise ValueError(f"Unknown offer origin: {origin!r}") from None
