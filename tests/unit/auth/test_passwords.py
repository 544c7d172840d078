"""Tests for bcrypt password hashing."""

import asyncio

from bloggers.core.modules.auth.passwords import PasswordHasher


class TestPasswordHasher:
    def setup_method(self):
        self.hasher = PasswordHasher(rounds=4)

    def test_hash_verifies(self):
        password_hash = asyncio.run(self.hasher.hash("secret1"))
        assert password_hash != "secret1"
        assert asyncio.run(self.hasher.verify("secret1", password_hash)) is True

    def test_wrong_password_fails(self):
        password_hash = asyncio.run(self.hasher.hash("secret1"))
        assert asyncio.run(self.hasher.verify("secret2", password_hash)) is False

    def test_hashes_are_salted(self):
        assert asyncio.run(self.hasher.hash("secret1")) != asyncio.run(self.hasher.hash("secret1"))

    def test_work_factor_is_applied(self):
        password_hash = asyncio.run(self.hasher.hash("secret1"))
        assert password_hash.startswith("$2b$04$")

    def test_malformed_hash_is_a_mismatch(self):
        assert asyncio.run(self.hasher.verify("secret1", "not-a-bcrypt-hash")) is False

    def test_over_long_password_hashes_and_verifies(self):
        # 20 four-byte characters, 80 bytes of UTF-8
        password = "😀" * 20
        password_hash = asyncio.run(self.hasher.hash(password))
        assert asyncio.run(self.hasher.verify(password, password_hash)) is True
        assert asyncio.run(self.hasher.verify("😀" * 17, password_hash)) is False
