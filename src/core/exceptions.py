"""Custom exception classes and handlers."""

from typing import Any

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors: dict[str, list[str]] | None = None,
    ):
        self.detail = detail
        self.status_code = status_code
        self.errors = errors
        super().__init__(detail)


class DomainValidationError(BusinessLogicError):
    """Malformed or missing input; carries field-level messages."""

    def __init__(self, detail: str, errors: dict[str, list[str]] | None = None):
        super().__init__(detail, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


class SlotConflictError(DomainValidationError):
    """The requested date/time slot is already claimed."""

    def __init__(self, detail: str = "This time slot is already taken.", field: str = "appointment_time"):
        super().__init__(detail, {field: ["Already booked."]})


class AuthorizationError(BusinessLogicError):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail, status.HTTP_403_FORBIDDEN)


class NotFoundError(BusinessLogicError):
    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_404_NOT_FOUND)


class DomainRuleError(BusinessLogicError):
    """A state transition the lifecycle does not allow."""

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_400_BAD_REQUEST)


class TransientInfrastructureError(Exception):
    """A side-effect write failed; callers log it and carry on."""


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: FastAPI, exc: BusinessLogicError):
        body: dict[str, Any] = {"success": False, "message": exc.detail}
        if exc.errors:
            body["errors"] = exc.errors
        return JSONResponse(body, status_code=exc.status_code)
