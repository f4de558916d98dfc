"""Input validation library for registration and reports.

Public API:
    - ``require_fields``: Presence check with a combined error message
    - ``validate_length``: Maximum length of free-text fields
    - ``validate_nik``: 16-digit national identity number
    - ``validate_divisi``: Division membership in the fixed set
    - ``validate_email_address``: E-mail syntax check and normalization
    - ``validate_password``: Password composition policy
    - ``password_policy_violations``: Rules a password breaks
"""

from lapor_api.lib.validation.credentials import (
    EMAIL_MAX_LENGTH,
    NAMA_MAX_LENGTH,
    NIK_PATTERN,
    PASSWORD_MIN_LENGTH,
    PASSWORD_SYMBOLS,
    REPORTER_HASH_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    password_policy_violations,
    require_fields,
    validate_divisi,
    validate_email_address,
    validate_length,
    validate_nik,
    validate_password,
)

__all__ = [
    "EMAIL_MAX_LENGTH",
    "NAMA_MAX_LENGTH",
    "NIK_PATTERN",
    "PASSWORD_MIN_LENGTH",
    "PASSWORD_SYMBOLS",
    "REPORTER_HASH_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "USERNAME_MAX_LENGTH",
    "password_policy_violations",
    "require_fields",
    "validate_divisi",
    "validate_email_address",
    "validate_length",
    "validate_nik",
    "validate_password",
]
