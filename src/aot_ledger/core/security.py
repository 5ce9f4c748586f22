"""Bearer token helpers.

Tokens are minted by the surrounding application; this service only needs to
read the subject back out. ``create_access_token`` exists for operators and
tests.
"""
from __future__ import annotations

from datetime import timedelta

from jose import jwt

from aot_ledger.core.settings import settings
from aot_ledger.db.time import utcnow


def create_access_token(user_id: int, extra_claims: dict[str, str] | None = None) -> str:
    """Create a signed JWT whose subject is the user id."""
    to_encode: dict[str, object] = {"sub": str(user_id)}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_subject(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises:
        jose.JWTError: If the token is malformed, expired or badly signed.
        ValueError: If the subject is missing or not an integer id.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if subject is None:
        raise ValueError("Token has no subject")
    return int(subject)
