"""Pydantic schemas for users."""

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Customer contact details embedded in appointment and order payloads."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(serialization_alias="id")
    name: str
    phone: str | None = None
    email: str
