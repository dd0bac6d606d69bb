"""
Opaque secret generation.

Session ids and reset tokens are random URL-safe strings with 256 bits of
entropy. Reset tokens are stored only as a SHA-256 digest, and session ids
only ever appear in logs as a short fingerprint.
"""

import hashlib
import secrets

TOKEN_BYTES = 32


def generate_session_id() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def generate_reset_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def generate_initial_password() -> str:
    """Random password for admin-created accounts; the user replaces it via a reset token."""
    return secrets.token_urlsafe(24)


def hash_reset_token(raw_token: str) -> str:
    """Hex SHA-256 digest used as the lookup key for reset tokens."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def fingerprint(secret: str) -> str:
    """Short, non-reversible tag safe to put in log lines."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:12]
