"""Tests for the bcrypt-backed credential store."""

from __future__ import annotations

import unittest

from messagely.credentials import CredentialStore
from messagely.errors import BadInputError


class CredentialStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = CredentialStore(rounds=4)

    def test_hash_is_salted_and_verifies(self) -> None:
        first = self.store.hash("supersecurepassword")
        second = self.store.hash("supersecurepassword")

        self.assertNotEqual(first, second)
        self.assertNotIn("supersecurepassword", first)
        self.assertTrue(self.store.verify("supersecurepassword", first))
        self.assertTrue(self.store.verify("supersecurepassword", second))

    def test_mismatch_returns_false(self) -> None:
        hashed = self.store.hash("supersecurepassword")
        self.assertFalse(self.store.verify("incorrect", hashed))

    def test_work_factor_is_encoded_in_hash(self) -> None:
        hashed = self.store.hash("supersecurepassword")
        self.assertTrue(hashed.startswith("$2b$04$"))
        self.assertEqual(self.store.rounds, 4)

    def test_malformed_hash_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.store.verify("supersecurepassword", "not-a-hash")

    def test_empty_secret_is_rejected(self) -> None:
        with self.assertRaises(BadInputError):
            self.store.hash("")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
