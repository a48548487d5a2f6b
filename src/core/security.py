"""JWT issuing and verification for shop accounts."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from src.shared.enums import UserRole

from .config import settings


class TokenDecodeError(Exception):
    """Raised when a JWT cannot be decoded or is invalid."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: UserRole


def create_access_token(subject: str, role: UserRole | str, expires_minutes: int | None = None) -> str:
    """Sign a token for ``subject`` carrying its role; negative lifetimes yield an expired token."""
    lifetime = settings.jwt_expires_in_minutes if expires_minutes is None else expires_minutes
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": str(UserRole(role)),
        "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=lifetime),
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenDecodeError("Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise TokenDecodeError("Token has no subject")
    try:
        role = UserRole(payload.get("role"))
    except ValueError as exc:
        raise TokenDecodeError("Token has no valid role") from exc
    return TokenClaims(user_id=user_id, role=role)
