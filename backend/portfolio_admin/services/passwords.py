"""Password hashing with Argon2id.

Records written by the earlier deployment of the site hold bcrypt hashes
($2a$/$2b$/$2y$). Those still verify, and report needs_rehash() so the
caller can replace them with an Argon2id hash after a successful login.
"""

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def is_bcrypt_hash(password_hash: str) -> bool:
    return password_hash.startswith(BCRYPT_PREFIXES)


def _verify_bcrypt(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], password_hash.encode())
    except ValueError:
        # Malformed salt or hash
        return False


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password against its hash using constant-time comparison.

    A missing, empty or malformed hash counts as a mismatch.
    """
    if not password_hash:
        return False
    if is_bcrypt_hash(password_hash):
        return _verify_bcrypt(password, password_hash)
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        # VerifyMismatchError is a VerificationError
        return False


def needs_rehash(password_hash: str) -> bool:
    """Whether a verified hash should be replaced by a current Argon2id hash."""
    if is_bcrypt_hash(password_hash):
        return True
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return False
