"""Encode/decode boundary for the ``sizes`` column.

``sizes`` maps a garment size label to a non-negative quantity. It is stored
as JSON text; reads accept either that text or an already-decoded mapping.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

from src.shared.enums import SizeLabel

Sizes = dict[SizeLabel, int]


def decode_sizes(raw: str | Mapping[str, Any] | None) -> Sizes:
    """Return a validated size mapping; raises ``ValueError`` on bad input."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError("sizes must be a JSON object") from exc
    if not isinstance(raw, Mapping):
        raise ValueError("sizes must be a mapping of size label to quantity")

    sizes: Sizes = {}
    for label, quantity in raw.items():
        try:
            size = SizeLabel(label)
        except ValueError as exc:
            raise ValueError(f"unknown size label {label!r}") from exc
        if isinstance(quantity, bool) or not isinstance(quantity, (int, str)):
            raise ValueError(f"quantity for {label!r} must be an integer")
        try:
            count = int(quantity)
        except ValueError as exc:
            raise ValueError(f"quantity for {label!r} must be an integer") from exc
        if count < 0:
            raise ValueError(f"quantity for {label!r} must be a non-negative integer")
        sizes[size] = count
    return sizes


def encode_sizes(sizes: Mapping[str, int]) -> str:
    return json.dumps({str(SizeLabel(label)): int(quantity) for label, quantity in sizes.items()})


def total_of(sizes: Mapping[Any, int]) -> int:
    return sum(sizes.values())


class SizesType(TypeDecorator):
    """JSON text column holding a :data:`Sizes` mapping."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return encode_sizes(decode_sizes(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return {}
        return decode_sizes(value)
