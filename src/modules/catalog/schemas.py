"""Catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ServiceTypePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_type_id: str = Field(serialization_alias="id")
    name: str
    downpayment_amount: Decimal
