"""
Password hashing with bcrypt.
"""

import secrets

import bcrypt

# bcrypt reads at most this many bytes; recent releases reject longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def random_password() -> str:
    """Unguessable password for accounts nobody logs into directly."""
    return secrets.token_urlsafe(24)
