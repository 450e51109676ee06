"""Tests for Argon2 password hashing."""

import bcrypt
from argon2 import PasswordHasher

from portfolio_admin.services.passwords import hash_password, needs_rehash, verify_password


def bcrypt_hash(password: str, prefix: bytes = b"2b") -> str:
    # Cost 4 keeps the tests fast; the earlier site used cost 12
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4, prefix=prefix)).decode()


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_returns_argon2_hash(self):
        """Test that hash_password returns an Argon2id hash."""
        hashed = hash_password("TestPassword123!")
        assert hashed.startswith("$argon2id$")

    def test_hash_password_is_salted(self):
        """Test that the same password gives different hashes."""
        assert hash_password("TestPassword123!") != hash_password("TestPassword123!")

    def test_verify_password_correct(self):
        hashed = hash_password("TestPassword123!")
        assert verify_password("TestPassword123!", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("TestPassword123!")
        assert verify_password("WrongPassword123!", hashed) is False

    def test_verify_password_empty_hash(self):
        assert verify_password("TestPassword123!", "") is False
        assert verify_password("TestPassword123!", None) is False

    def test_verify_password_malformed_hash(self):
        """A hash that is not Argon2 is treated as a mismatch, not an error."""
        assert verify_password("TestPassword123!", "not-a-hash") is False
        assert verify_password("TestPassword123!", "$2b$12$invalidbcrypthash") is False


class TestLegacyBcryptHashes:
    """Tests for hashes written by the earlier bcrypt-based deployment."""

    def test_verify_bcrypt_hash(self):
        hashed = bcrypt_hash("Legacy-Passw0rd!")
        assert verify_password("Legacy-Passw0rd!", hashed) is True
        assert verify_password("Wrong-Passw0rd!", hashed) is False

    def test_verify_2a_prefix(self):
        hashed = bcrypt_hash("Legacy-Passw0rd!", prefix=b"2a")
        assert hashed.startswith("$2a$")
        assert verify_password("Legacy-Passw0rd!", hashed) is True

    def test_long_password_matches_truncated_bcrypt_hash(self):
        """bcrypt only reads the first 72 bytes of a password."""
        password = "Aa1!" * 30
        hashed = bcrypt.hashpw(password.encode()[:72], bcrypt.gensalt(rounds=4)).decode()
        assert verify_password(password, hashed) is True

    def test_bcrypt_hash_needs_rehash(self):
        assert needs_rehash(bcrypt_hash("Legacy-Passw0rd!")) is True


class TestNeedsRehash:
    def test_current_argon2_hash(self):
        assert needs_rehash(hash_password("TestPassword123!")) is False

    def test_weaker_argon2_parameters(self):
        weak = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1).hash("TestPassword123!")
        assert needs_rehash(weak) is True

    def test_malformed_hash(self):
        assert needs_rehash("not-a-hash") is False
