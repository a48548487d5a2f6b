"""Common Pydantic schemas."""

from collections import defaultdict
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from src.core.exceptions import DomainValidationError

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


class ResponseEnvelope(BaseModel, Generic[T]):
    """Standard API envelope."""

    success: bool = True
    data: T | None = None
    message: str | None = None


def validate_form(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate multipart form fields, reporting failures per field."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors: dict[str, list[str]] = defaultdict(list)
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
            message = error["msg"].removeprefix("Value error, ")
            errors[field].append(message)
        raise DomainValidationError("Validation error", dict(errors)) from exc
