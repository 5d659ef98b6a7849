"""Password hashing with argon2id via ``argon2-cffi``.

Produces PHC-format strings (``$argon2id$v=19$m=...``) safe for
database storage.

Usage::

    from wren.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with argon2id.

    Args:
        password: The plaintext password to hash.

    Returns:
        A PHC-format hash string.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, phc_hash: str) -> bool:
    """Verify a password against a stored hash.

    Returns ``False`` for a wrong password, an empty input, or a hash
    that is not argon2.
    """
    if not password or not phc_hash:
        return False
    try:
        return _hasher.verify(phc_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(phc_hash: str) -> bool:
    """True when *phc_hash* was made with weaker parameters than today's."""
    return _hasher.check_needs_rehash(phc_hash)
