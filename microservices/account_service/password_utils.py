"""
Password Utilities for Account Service

Provides bcrypt password hashing and the platform's password policy.
"""

import logging
from typing import Optional, Tuple

import bcrypt

logger = logging.getLogger(__name__)

# Bcrypt work factor (12 is a good balance of security and performance)
BCRYPT_ROUNDS = 12

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (lowered in tests)

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash; malformed hashes never match"""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False


def is_password_strong(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> Tuple[bool, Optional[str]]:
    """
    Check if password meets minimum security requirements.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters"

    has_letter = any(c.isalpha() for c in password)
    has_digit = any(c.isdigit() for c in password)

    if not (has_letter and has_digit):
        return False, "Password must contain at least one letter and one number"

    return True, None
