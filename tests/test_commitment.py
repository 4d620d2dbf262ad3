import hashlib
import unittest

from zklogin.commitment import (
    commitment_for,
    create_commitment,
    decode_commitment,
    decode_salt,
    password_to_field,
)
from zklogin.crypto import DEFAULT_KEY
from zklogin.errors import InvalidPassword, MalformedCredential, RandomnessUnavailable


class TestCreateCommitment(unittest.TestCase):
    def test_shape(self) -> None:
        salt, commitment = create_commitment("hunter2")
        self.assertEqual(len(salt), 32)
        self.assertEqual(salt, salt.lower())
        self.assertTrue(commitment.startswith("0x"))
        value = int(commitment, 16)
        self.assertTrue(1 < value < DEFAULT_KEY.p)
        self.assertEqual(pow(value, DEFAULT_KEY.q, DEFAULT_KEY.p), 1)

    def test_fresh_salt_and_commitment_per_call(self) -> None:
        first = create_commitment("same password")
        second = create_commitment("same password")
        self.assertNotEqual(first[0], second[0])
        self.assertNotEqual(first[1], second[1])

    def test_commitment_recomputable_from_salt(self) -> None:
        salt, commitment = create_commitment("correct horse")
        self.assertEqual(commitment_for("correct horse", salt), commitment)
        self.assertNotEqual(commitment_for("correct horsf", salt), commitment)

    def test_uses_supplied_random_source(self) -> None:
        salt, commitment = create_commitment("pw", random_bytes=lambda n: bytes(range(n)))
        self.assertEqual(salt, "000102030405060708090a0b0c0d0e0f")
        self.assertEqual(commitment, commitment_for("pw", salt))

    def test_empty_password_rejected(self) -> None:
        with self.assertRaises(InvalidPassword):
            create_commitment("")

    def test_unencodable_password_rejected(self) -> None:
        with self.assertRaises(InvalidPassword):
            create_commitment("abc\ud800")

    def test_non_string_password_rejected(self) -> None:
        with self.assertRaises(InvalidPassword):
            create_commitment(b"bytes")  # type: ignore[arg-type]

    def test_randomness_failure(self) -> None:
        def broken(_: int) -> bytes:
            raise OSError("no entropy")

        with self.assertRaises(RandomnessUnavailable):
            create_commitment("hunter2", random_bytes=broken)

    def test_short_random_read(self) -> None:
        with self.assertRaises(RandomnessUnavailable):
            create_commitment("hunter2", random_bytes=lambda n: b"\x01" * (n - 1))


class TestEncoding(unittest.TestCase):
    def test_password_field_is_truncated_sha256(self) -> None:
        expected = int.from_bytes(hashlib.sha256("hunter2".encode("utf-8")).digest()[:31], "big")
        self.assertEqual(password_to_field("hunter2"), expected)
        self.assertLess(password_to_field("hunter2"), 2**248)

    def test_password_field_uses_utf8_bytes(self) -> None:
        expected = int.from_bytes(hashlib.sha256("pässwörd".encode("utf-8")).digest()[:31], "big")
        self.assertEqual(password_to_field("pässwörd"), expected)
        self.assertNotEqual(password_to_field("pässwörd"), password_to_field("passwoerd"))

    def test_decode_salt(self) -> None:
        self.assertEqual(decode_salt("ff" * 16), b"\xff" * 16)
        for bad in ("ff" * 15, "zz" * 16, "ff" * 17, "", None):
            with self.assertRaises(MalformedCredential):
                decode_salt(bad)  # type: ignore[arg-type]

    def test_decode_commitment(self) -> None:
        self.assertEqual(decode_commitment("0x10"), 16)
        for bad in ("10", "0xzz", "0x1", hex(DEFAULT_KEY.p), hex(DEFAULT_KEY.p - 1), 16):
            with self.assertRaises(MalformedCredential):
                decode_commitment(bad)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
