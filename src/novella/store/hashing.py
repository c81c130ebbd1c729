# ABOUTME: Password salting and hashing, plus session token generation.
# ABOUTME: SHA-256 over "salt:password"; tokens and salts come from the secrets module.

import hashlib
import hmac
import secrets

SALT_BYTES = 16
TOKEN_BYTES = 32  # 64 hex characters


def generate_salt() -> str:
    """Return a fresh random salt as a hex string."""
    return secrets.token_hex(SALT_BYTES)


def hash_password(salt: str, password: str) -> str:
    """Compute the salted SHA-256 hash of a password.

    Args:
        salt: Per-user random salt.
        password: The raw password. It is never stored.

    Returns:
        Lowercase hex digest string (64 characters).
    """
    hasher = hashlib.sha256()
    hasher.update(f"{salt}:{password}".encode("utf-8"))
    return hasher.hexdigest()


def verify_password(salt: str, password: str, expected_hash: str) -> bool:
    """Check a password against a stored hash in constant time."""
    return hmac.compare_digest(hash_password(salt, password), expected_hash)


def generate_token() -> str:
    """Return a new opaque session token."""
    return secrets.token_hex(TOKEN_BYTES)
