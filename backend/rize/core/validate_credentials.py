"""Credential Validation — local checks that run before any identity-provider call.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - Return CredentialValidationError on violation, None on success
    - A rejected credential pair never reaches the provider
    - Sign-up: a short password is always reported as the `password` field,
      whatever the state of the email; email messages go required → format
    - Sign-up order is password length, then email required, then format.
      The registration screen this replaces checked the email first; length
      goes first here so a short password is reported as `password` even when
      the email is empty or malformed

Design Decisions:
    - Return the error instead of raising: AuthSessionManager folds it into
      an AuthOutcome, same path as a classified provider failure
    - Address pattern mirrors the common mobile-platform check: local part,
      '@', domain with at least one dot
"""

import re

from rize.core.errors import CredentialValidationError

EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9+._%\-]{1,256}"
    r"@"
    r"[a-zA-Z0-9][a-zA-Z0-9\-]{0,64}"
    r"(\.[a-zA-Z0-9][a-zA-Z0-9\-]{0,25})+"
)

DEFAULT_MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def check_email(email: str) -> CredentialValidationError | None:
    """Email must be present and well-formed."""
    if not email:
        return CredentialValidationError("email", "Email is required")
    if not is_valid_email(email):
        return CredentialValidationError("email", "Invalid email format")
    return None


def check_password_length(
    password: str, min_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
) -> CredentialValidationError | None:
    if len(password) < min_length:
        return CredentialValidationError(
            "password",
            f"Password must be at least {min_length} characters",
        )
    return None


def validate_sign_in(email: str, password: str) -> CredentialValidationError | None:
    """Both fields required, then email format."""
    if not email or not password:
        field = "email" if not email else "password"
        return CredentialValidationError(field, "Please enter email and password")
    if not is_valid_email(email):
        return CredentialValidationError("email", "Invalid email format")
    return None


def validate_sign_up(
    email: str, password: str, min_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
) -> CredentialValidationError | None:
    """Password length first, then email required → format."""
    return check_password_length(password, min_length) or check_email(email)


def validate_password_reset(email: str) -> CredentialValidationError | None:
    return check_email(email)
