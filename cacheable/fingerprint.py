"""
Cacheable - Query Fingerprinting

Turns the structure of a read query plus its caching options into a stable
cache key. The key depends only on values, never on object identity, so the
same query yields the same key in every process and on every machine.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import FingerprintError

# Lifetime sentinel: keep the entry until it is flushed
FOREVER = -1

# Order of the structural query components inside the fingerprint record
STRUCTURE_FIELDS = (
    "aggregate",
    "columns",
    "distinct",
    "source",
    "joins",
    "wheres",
    "groups",
    "havings",
    "orders",
    "limit",
    "offset",
    "unions",
    "union_limit",
    "union_offset",
    "union_orders",
    "lock",
)


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Everything about a read query that can change its result.

    ``columns`` is what the builder itself selects; ``selected`` is what the
    caller asked for when running the query. ``sql`` and ``bindings`` are the
    compiled statement. All values must be JSON-like (scalars, lists, dicts,
    dates, decimals, enums, dataclasses or pydantic models).
    """

    entity_type: str
    aggregate: Any = None
    columns: Any = None
    distinct: bool = False
    source: Any = None
    joins: Any = None
    wheres: Any = ()
    groups: Any = None
    havings: Any = None
    orders: Any = None
    limit: int | None = None
    offset: int | None = None
    unions: Any = None
    union_limit: int | None = None
    union_offset: int | None = None
    union_orders: Any = None
    lock: Any = None
    eager_loads: Any = None
    sql: str = ""
    bindings: Any = ()
    selected: Any = ("*",)

    def structure(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in STRUCTURE_FIELDS}


@dataclass(frozen=True)
class CacheOptions:
    """Per-call caching options: which driver to use and how long to keep the result."""

    driver: str | None = None
    lifetime: int | float | timedelta = FOREVER
    _seconds: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_seconds", _lifetime_seconds(self.lifetime))

    @property
    def forever(self) -> bool:
        return self._seconds == FOREVER

    @property
    def lifetime_seconds(self) -> int:
        return self._seconds


def _lifetime_seconds(lifetime: int | float | timedelta) -> int:
    if isinstance(lifetime, bool):
        raise ValueError("lifetime must be a number of seconds, a timedelta or FOREVER")
    if isinstance(lifetime, timedelta):
        seconds = lifetime.total_seconds()
    elif isinstance(lifetime, int | float):
        if lifetime == FOREVER:
            return FOREVER
        seconds = float(lifetime)
    else:
        raise ValueError("lifetime must be a number of seconds, a timedelta or FOREVER")

    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"lifetime must be positive or FOREVER, got {lifetime!r}")

    # Stores work in whole seconds; never round a short lifetime down to "no expiry"
    return math.ceil(seconds)


def _canonical(value: Any, path: str) -> Any:
    """Reduce a value to JSON primitives, tagging types JSON cannot tell apart."""
    if isinstance(value, Enum):
        return {"__enum__": f"{type(value).__name__}.{value.name}", "value": _canonical(value.value, path)}
    if value is None or isinstance(value, bool | int | str):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FingerprintError(
                f"Cannot fingerprint non-finite float at {path}",
                details={"path": path, "value": repr(value)},
            )
        return value
    if isinstance(value, Decimal):
        return {"__decimal__": str(value)}
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    if isinstance(value, date):
        return {"__date__": value.isoformat()}
    if isinstance(value, time):
        return {"__time__": value.isoformat()}
    if isinstance(value, timedelta):
        return {"__timedelta__": value.total_seconds()}
    if isinstance(value, bytes | bytearray):
        return {"__bytes__": bytes(value).hex()}
    if isinstance(value, BaseModel):
        return {"__model__": type(value).__name__, "fields": _canonical(value.model_dump(mode="json"), path)}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return {"__dataclass__": type(value).__name__, "fields": _canonical(fields, path)}
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise FingerprintError(
                    f"Cannot fingerprint mapping with non-string key {key!r} at {path}",
                    details={"path": path, "key_type": type(key).__name__},
                )
            result[key] = _canonical(item, f"{path}.{key}")
        return result
    if isinstance(value, set | frozenset):
        items = [_canonical(item, f"{path}[]") for item in value]
        return {"__set__": sorted(items, key=lambda item: json.dumps(item, sort_keys=True))}
    if isinstance(value, list | tuple):
        return [_canonical(item, f"{path}[{i}]") for i, item in enumerate(value)]

    raise FingerprintError(
        f"Cannot fingerprint value of type {type(value).__name__} at {path}",
        details={"path": path, "value_type": type(value).__name__},
    )


def fingerprint(descriptor: QueryDescriptor, options: CacheOptions | None = None) -> str:
    """
    Compute the cache key for a query under the given caching options.

    The record hashed is, in order: structural components, caller-selected
    columns, entity type, driver, lifetime, eager loads, bindings and the
    compiled SQL. Structural fields are kept even though the SQL is present,
    so two builders compiling to the same text still get different keys.

    Args:
        descriptor: Query to fingerprint
        options: Caching options (defaults to the default driver, cached forever)

    Returns:
        64-character hex SHA-256 digest

    Raises:
        FingerprintError: If any component cannot be serialized canonically
    """
    options = options or CacheOptions()

    record = [
        _canonical(descriptor.structure(), "structure"),
        _canonical(descriptor.selected, "selected"),
        descriptor.entity_type,
        options.driver,
        options.lifetime_seconds,
        _canonical(descriptor.eager_loads, "eager_loads"),
        _canonical(descriptor.bindings, "bindings"),
        descriptor.sql,
    ]

    try:
        payload = json.dumps(
            record,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise FingerprintError(
            f"Failed to serialize query for entity type '{descriptor.entity_type}': {e}",
            details={"entity_type": descriptor.entity_type, "error": str(e)},
        ) from e

    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
