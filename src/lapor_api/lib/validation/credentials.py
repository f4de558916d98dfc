"""Pure-function validators for registration input.

Each validator raises ``ValueError`` with a user-facing message; callers
run them in a fixed order (presence, format, password policy) before any
database lookup.
"""

import re
import string
from collections.abc import Mapping

from pydantic import validate_email
from pydantic_core import PydanticCustomError

from lapor_api.core.enums import Divisi, enum_values

NIK_PATTERN = re.compile(r"^[0-9]{16}$")

PASSWORD_MIN_LENGTH = 8
# Symbols accepted by the password policy.
PASSWORD_SYMBOLS = "!@#$%^&*()-_=+[]{};:'\",.<>/?\\|`~"

# Column widths of the free-text fields they guard.
USERNAME_MAX_LENGTH = 100
NAMA_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 255
TITLE_MAX_LENGTH = 255
REPORTER_HASH_MAX_LENGTH = 255


def require_fields(values: Mapping[str, str | None], labels: Mapping[str, str]) -> None:
    """Check that every required field is present and non-blank.

    Args:
        values: Field name to submitted value.
        labels: Field name to display label, in the order they should be
            listed in the error message.

    Raises:
        ValueError: If any field is missing or blank.
    """
    missing = [name for name in labels if not (values.get(name) or "").strip()]
    if missing:
        names = list(labels.values())
        if len(names) == 1:
            msg = f"{names[0]} is required"
        elif len(names) == 2:
            msg = f"{names[0]} and {names[1]} are required"
        else:
            msg = ", ".join(names[:-1]) + f", and {names[-1]} are required"
        raise ValueError(msg)


def validate_length(value: str, label: str, max_length: int) -> str:
    """Reject values longer than the column that stores them.

    Args:
        value: The submitted value.
        label: Field name used in the error message.
        max_length: Maximum number of characters.

    Returns:
        The value unchanged.

    Raises:
        ValueError: If the value is too long.
    """
    if len(value) > max_length:
        msg = f"{label} must be at most {max_length} characters"
        raise ValueError(msg)
    return value


def validate_nik(nik: str) -> str:
    """Validate a national identity number (exactly 16 decimal digits).

    Args:
        nik: The submitted NIK.

    Returns:
        The NIK unchanged.

    Raises:
        ValueError: If the NIK is not exactly 16 digits.
    """
    if not NIK_PATTERN.fullmatch(nik):
        msg = "NIK must be exactly 16 digits"
        raise ValueError(msg)
    return nik


def validate_divisi(divisi: str) -> str:
    """Validate a division against the fixed set of divisions.

    Raises:
        ValueError: If the division is not recognised.
    """
    allowed = enum_values(Divisi)
    if divisi not in allowed:
        msg = f"Invalid divisi. Must be one of: {', '.join(allowed)}"
        raise ValueError(msg)
    return divisi


def validate_email_address(email: str) -> str:
    """Validate e-mail syntax and return the normalized address.

    Raises:
        ValueError: If the address is malformed.
    """
    try:
        _, normalized = validate_email(email)
    except PydanticCustomError as e:
        msg = "Invalid email address"
        raise ValueError(msg) from e
    return normalized


def password_policy_violations(password: str) -> list[str]:
    """List the password policy rules a password breaks.

    Args:
        password: The candidate password.

    Returns:
        Human-readable rule descriptions; empty when the password is valid.
    """
    violations = []
    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if not any(c in string.ascii_lowercase for c in password):
        violations.append("a lowercase letter")
    if not any(c in string.ascii_uppercase for c in password):
        violations.append("an uppercase letter")
    if not any(c in string.digits for c in password):
        violations.append("a digit")
    if not any(c in PASSWORD_SYMBOLS for c in password):
        violations.append("a symbol")
    return violations


def validate_password(password: str) -> str:
    """Enforce the password policy.

    Raises:
        ValueError: Listing every rule the password breaks.
    """
    violations = password_policy_violations(password)
    if violations:
        msg = "Password must contain " + ", ".join(violations)
        raise ValueError(msg)
    return password
