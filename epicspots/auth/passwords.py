"""Password hashing with bcrypt.

bcrypt only looks at the first 72 bytes of a password and recent releases
refuse longer input, so the limit is checked up front.
"""

import bcrypt

BCRYPT_MAX_BYTES = 72


def password_fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= BCRYPT_MAX_BYTES


def hash_password(password: str) -> str:
    if not password_fits(password):
        raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a mismatch and for passwords bcrypt could never have hashed."""
    if not password_fits(plain_password):
        return False
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )
