"""Read the expiry claim of a bearer token without verifying it.

The result is a UX hint only; the identity API remains the authority
on whether a token is accepted.  Signature and claim validation are
therefore switched off; expired tokens must still decode so that the
session store can tell *how* expired they are.

Every PyJWT error is translated into
:class:`~notes_client.exceptions.TokenDecodeError`.
"""

from __future__ import annotations

from typing import Any

import jwt

from notes_client.exceptions import TokenDecodeError

_UNVERIFIED_OPTIONS: dict[str, Any] = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


def decode_claims(token: str) -> dict[str, Any]:
    """Return the payload of a ``header.payload.signature`` token.

    Raises
    ------
    TokenDecodeError
        If the token does not have three segments, a segment is not
        valid base64url, or the payload is not a JSON object.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise TokenDecodeError("Token must have three dot-separated segments.")
    try:
        claims = jwt.decode(token, options=_UNVERIFIED_OPTIONS)
    except jwt.PyJWTError as exc:
        raise TokenDecodeError(f"Token payload could not be decoded: {exc}") from exc
    if not isinstance(claims, dict):
        raise TokenDecodeError("Token payload is not a JSON object.")
    return claims


def decode_expiry(token: str) -> float:
    """Return the token's ``exp`` claim in milliseconds since the epoch.

    Raises
    ------
    TokenDecodeError
        If the token cannot be decoded or ``exp`` is missing or not a
        number.
    """
    exp = decode_claims(token).get("exp")
    # bool is an int subclass but never a timestamp.
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise TokenDecodeError("Token has no numeric 'exp' claim.")
    return float(exp) * 1000.0


def is_expired(token: str | None, now_ms: float) -> bool:
    """Return ``True`` when *token* is absent, malformed, or past ``exp``."""
    if not token:
        return True
    try:
        return decode_expiry(token) <= now_ms
    except TokenDecodeError:
        return True
