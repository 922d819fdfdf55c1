"""Pre-flight validation of login and registration input.

Every function in this module is a **pure** check: no I/O, no side
effects.  Problems are collected per field and raised together as a
single :class:`~notes_client.exceptions.ValidationError`; input that
fails here is never sent to the session store.
"""

from __future__ import annotations

import re

from notes_client.exceptions import ValidationError

_EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2


def password_requirements(password: str) -> dict[str, bool]:
    """Report which strength requirements *password* meets."""
    return {
        "length": len(password) >= MIN_PASSWORD_LENGTH,
        "uppercase": re.search(r"[A-Z]", password) is not None,
        "lowercase": re.search(r"[a-z]", password) is not None,
        "number": re.search(r"\d", password) is not None,
    }


def _check_email(email: str, errors: dict[str, str]) -> None:
    if not email:
        errors["email"] = "Email is required"
    elif not _EMAIL_PATTERN.search(email):
        errors["email"] = "Please enter a valid email address"


def _raise_if_any(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationError(next(iter(errors.values())), field_errors=errors)


def validate_login(email: str, password: str) -> None:
    """Validate sign-in input.

    Raises
    ------
    ValidationError
        With one entry per failing field.
    """
    errors: dict[str, str] = {}
    _check_email(email, errors)
    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    _raise_if_any(errors)


def validate_registration(
    name: str,
    email: str,
    password: str,
    confirm_password: str,
    *,
    accept_terms: bool = True,
) -> None:
    """Validate account-creation input.

    Raises
    ------
    ValidationError
        With one entry per failing field.
    """
    errors: dict[str, str] = {}

    trimmed = name.strip()
    if not trimmed:
        errors["name"] = "Full name is required"
    elif len(trimmed) < MIN_NAME_LENGTH:
        errors["name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"

    _check_email(email, errors)

    if not password:
        errors["password"] = "Password is required"
    elif not all(password_requirements(password).values()):
        errors["password"] = "Password must meet all requirements"

    if not confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    if not accept_terms:
        errors["accept_terms"] = "You must accept the terms and conditions"

    _raise_if_any(errors)
