"""
Encryption envelope for snippet bodies stored at rest.

Snippet code is never kept in plaintext in the snippet store.  Each
body is encrypted with AES-256 in CBC mode (PKCS7 padded) under a
single process wide key, using a fresh random IV for every call, and
stored as the text ``<hex iv>:<hex ciphertext>``.  Because the IV is
new each time, two identical snippets never produce the same stored
value.

Decoding validates the framing (exactly two fields of bare hex digits, a
16 byte IV, a block aligned ciphertext) before any decryption is
attempted.  Every failure surfaces as ``DecodeError``; callers treat it
as "this record is unreadable" rather than as a fault.
"""

import binascii
import logging
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import DecodeError, FatalConfiguration


logger = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 16
BLOCK_SIZE_BITS = algorithms.AES.block_size

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class EncryptedPayload:
    """IV plus ciphertext, with the colon delimited text framing."""

    iv: bytes
    ciphertext: bytes

    def to_storage(self) -> str:
        return f"{self.iv.hex()}:{self.ciphertext.hex()}"

    @classmethod
    def from_storage(cls, stored: str) -> "EncryptedPayload":
        """Parse the stored text form, validating lengths.

        Raises ``DecodeError`` if ``stored`` is not two colon separated
        hex fields, if the IV is not ``IV_LENGTH`` bytes or if the
        ciphertext is empty or not a whole number of blocks.
        """
        if not isinstance(stored, str):
            raise DecodeError("Stored payload is not text")
        parts = stored.split(":")
        if len(parts) != 2:
            raise DecodeError("Invalid encrypted text format")
        iv_hex, ciphertext_hex = parts
        # bytes.fromhex skips whitespace, so check the raw field width too.
        if len(iv_hex) != IV_LENGTH * 2:
            raise DecodeError("Invalid IV length")
        if not _HEX_DIGITS.issuperset(iv_hex) or not _HEX_DIGITS.issuperset(ciphertext_hex):
            raise DecodeError("Encrypted text is not valid hex")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError:
            raise DecodeError("Encrypted text is not valid hex")
        if not ciphertext or len(ciphertext) % (BLOCK_SIZE_BITS // 8):
            raise DecodeError("Invalid ciphertext length")
        return cls(iv=iv, ciphertext=ciphertext)


class EncryptionEnvelope:
    """Encrypts and decrypts snippet bodies with the server key."""

    def __init__(self, key: bytes) -> None:
        if len(key) != KEY_LENGTH:
            raise FatalConfiguration(
                f"ENCRYPTION_KEY must be {KEY_LENGTH} bytes ({KEY_LENGTH * 2} hex characters)."
            )
        self._key = key

    @classmethod
    def from_hex(cls, key_hex: str) -> "EncryptionEnvelope":
        """Build an envelope from the hex encoded ``ENCRYPTION_KEY``.

        Raises ``FatalConfiguration`` if the value is missing, is not hex
        or does not decode to exactly 32 bytes.
        """
        if not key_hex:
            raise FatalConfiguration("ENCRYPTION_KEY is not set.")
        try:
            key = binascii.unhexlify(key_hex.strip())
        except (binascii.Error, ValueError):
            raise FatalConfiguration("ENCRYPTION_KEY must be a hex string.")
        return cls(key)

    def encrypt(self, plaintext: str) -> EncryptedPayload:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return EncryptedPayload(iv=iv, ciphertext=ciphertext)

    def decrypt(self, payload: EncryptedPayload) -> str:
        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(payload.iv)).decryptor()
        padded = decryptor.update(payload.ciphertext) + decryptor.finalize()
        try:
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except ValueError:
            # Bad padding or non UTF-8 output: wrong key or tampered data.
            raise DecodeError("Decryption failed")

    def encode(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` and return its storage form."""
        return self.encrypt(plaintext).to_storage()

    def decode(self, stored: str) -> str:
        """Return the plaintext for a stored value or raise ``DecodeError``."""
        try:
            return self.decrypt(EncryptedPayload.from_storage(stored))
        except DecodeError as exc:
            logger.warning("Could not decode stored payload: %s", exc.message)
            raise
