"""Catalog ORM models."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import ulid_primary_key


class ServiceType(Base, TimestampMixin):
    __tablename__ = "service_types"
    __table_args__ = (CheckConstraint("downpayment_amount >= 0", name="ck_service_types_downpayment_positive"),)

    service_type_id: Mapped[str] = ulid_primary_key()
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    downpayment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
