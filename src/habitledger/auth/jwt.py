"""Identity-provider token verification.

Tokens are issued by the external identity provider; this service only
verifies them and reads the ``sub`` claim. RS*/ES* algorithms verify with a
public key file, HS* algorithms with a shared secret.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jwt

from habitledger.config import get_settings

_verification_key: str | None = None


def _load_key() -> str:
    """Load the verification key (cached after first call)."""
    global _verification_key  # noqa: PLW0603
    if _verification_key is None:
        settings = get_settings()
        if settings.jwt_algorithm.upper().startswith("HS"):
            _verification_key = settings.jwt_secret
        else:
            _verification_key = Path(settings.jwt_public_key_path).read_text()
    return _verification_key


def reset_keys() -> None:
    """Reset the cached key (useful for testing)."""
    global _verification_key  # noqa: PLW0603
    _verification_key = None


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an identity token.

    Returns:
        Decoded payload dictionary.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or has no subject.
    """
    settings = get_settings()
    options = {"require": ["sub", "exp"], "verify_aud": settings.jwt_audience is not None}
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            _load_key(),
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)
    return payload
