"""Password hashing with bcrypt."""

import bcrypt

DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72


class PasswordMismatchError(ValueError):
    """Raised when a password does not match a stored hash."""

    def __init__(self, message="crypto/bcrypt: hashedPassword is not the hash of the given password"):
        super().__init__(message)


def hash_password(password):
    """Return the bcrypt hash of ``password`` as a string."""
    raw = password.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise ValueError("failed to hash password: bcrypt: password length exceeds 72 bytes")
    try:
        hashed = bcrypt.hashpw(raw, bcrypt.gensalt(rounds=DEFAULT_COST))
    except ValueError as exc:
        raise ValueError(f"failed to hash password: {exc}") from exc
    return hashed.decode("ascii")


def check_password(password, hashed_password):
    """Raise PasswordMismatchError unless ``password`` matches ``hashed_password``."""
    raw = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    if not bcrypt.checkpw(raw, hashed_password.encode("ascii")):
        raise PasswordMismatchError()