"""
auth/crypto.py -- Symmetric AES helper producing "iv:ciphertext" envelopes.

Envelope format: "<iv_base64>:<ciphertext_base64>", both standard base64.
A fresh 16-byte IV is drawn from os.urandom() for every encrypt() call, so
encrypting the same plaintext twice gives two different envelopes.

Key material: scrypt(AES_KEY, salt=b"salt", N=2**14, r=8, p=1), sized to the
cipher named by ALGORITHM ("aes-256-cbc" -> 32 bytes). The salt is fixed so
every process derives the same key from the same AES_KEY.

Known limitation: the envelope carries no authentication tag. A modified
ciphertext decrypts to garbage or fails padding/UTF-8 decoding with
ValueError -- it is never reported as tampering. The format is kept as-is for
compatibility with envelopes already stored by other clients.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

try:
    # cryptography >= 47 moved the legacy stream modes here; the old names go away in 49.
    from cryptography.hazmat.decrepit.ciphers.modes import CFB, OFB
except ImportError:
    from cryptography.hazmat.primitives.ciphers.modes import CFB, OFB

from core.config import CIPHER_NAME_RE

IV_SIZE = 16
_KDF_SALT = b"salt"

_MODES = {
    "cbc": modes.CBC,
    "ctr": modes.CTR,
    "cfb": CFB,
    "ofb": OFB,
}


def derive_key(secret: str, length: int = 32) -> bytes:
    """Stretch the configured AES_KEY into `length` bytes of key material."""
    kdf = Scrypt(salt=_KDF_SALT, length=length, n=2**14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


class AESCipher:
    """Encrypt/decrypt strings with a fixed key and cipher name.

    Usage:
        cipher = AESCipher("my-aes-key", "aes-256-cbc")
        envelope = cipher.encrypt("hello")
        cipher.decrypt(envelope)   # "hello"
    """

    def __init__(self, secret: str, algorithm: str) -> None:
        match = CIPHER_NAME_RE.match(algorithm.strip().lower())
        if match is None:
            raise ValueError(f"Unsupported cipher algorithm: {algorithm!r}")
        bits, mode_name = match.groups()
        self.algorithm = match.group(0)
        self._mode = _MODES[mode_name]
        # Only CBC is a block mode here; the others are stream modes and need no padding.
        self._padded = mode_name == "cbc"
        self._key = derive_key(secret, int(bits) // 8)

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), self._mode(iv))

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_SIZE)
        data = plaintext.encode("utf-8")
        if self._padded:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            data = padder.update(data) + padder.finalize()
        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(data) + encryptor.finalize()
        return f"{base64.b64encode(iv).decode()}:{base64.b64encode(ciphertext).decode()}"

    def decrypt(self, envelope: str) -> str:
        """Return the plaintext of an "iv:ciphertext" envelope.

        Raises ValueError on a malformed envelope, a wrong-sized IV, or
        ciphertext that does not unpad/decode cleanly.
        """
        iv_b64, sep, ct_b64 = envelope.partition(":")
        if not sep:
            raise ValueError("Malformed envelope: expected '<iv>:<ciphertext>'")
        try:
            iv = base64.b64decode(iv_b64, validate=True)
            ciphertext = base64.b64decode(ct_b64, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Malformed envelope: {exc}") from exc
        if len(iv) != IV_SIZE:
            raise ValueError(f"Malformed envelope: IV must be {IV_SIZE} bytes, got {len(iv)}")

        decryptor = self._cipher(iv).decryptor()
        data = decryptor.update(ciphertext) + decryptor.finalize()
        if self._padded:
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(data) + unpadder.finalize()
        return data.decode("utf-8")
