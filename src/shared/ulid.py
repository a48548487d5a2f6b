"""ULID identifiers for primary keys and stored upload names."""

import ulid
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

ULID_LENGTH = 26


def generate_ulid() -> str:
    return str(ulid.new())


def ulid_primary_key() -> Mapped[str]:
    """``String(26)`` primary key filled with a fresh ULID on insert."""
    return mapped_column(String(ULID_LENGTH), primary_key=True, default=generate_ulid)
