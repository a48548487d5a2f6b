"""Shared enumerations used across modules."""

from __future__ import annotations

from enum import StrEnum
from typing import Iterable, TypeVar

EnumType = TypeVar("EnumType", bound=StrEnum)


def enum_values(enum_cls: Iterable[EnumType]) -> list[str]:
    """Return the .value for each enum member (used by SQLAlchemy)."""
    return [member.value for member in enum_cls]


class UserRole(StrEnum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AppointmentStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class AppointmentState(StrEnum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class OrderStatus(StrEnum):
    PENDING = "Pending"
    READY_TO_CHECK = "Ready to Check"
    COMPLETED = "Completed"
    FINISHED = "Finished"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ORDER_STATUSES


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.FINISHED, OrderStatus.CANCELLED})
ACTIVE_ORDER_STATUSES = frozenset(set(OrderStatus) - TERMINAL_ORDER_STATUSES)


class SizeLabel(StrEnum):
    EXTRA_SMALL = "Extra Small"
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    EXTRA_LARGE = "Extra Large"


class NotificationAudience(StrEnum):
    CUSTOMER = "customer"
    ADMINS = "admins"
