# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

CIPHER_HEADER = "X-CIPHER-ENCODED"


class Cipher(Protocol):
    """Protocol for transparent body encryption"""

    def encrypt(self, data: bytes) -> bytes: ...

    def decrypt(self, data: bytes) -> bytes: ...


class AESGCMCipher:
    """
    AES-GCM cipher producing `nonce || ciphertext`.

    A fresh 96 bit nonce is drawn for every body; the key must be 16, 24
    or 32 bytes long.
    """

    NONCE_SIZE = 12

    def __init__(self, key: bytes, associated_data: bytes | None = None):
        self._aead = AESGCM(key)
        self.associated_data = associated_data

    @classmethod
    def generate(cls, bit_length: int = 256) -> "AESGCMCipher":
        return cls(AESGCM.generate_key(bit_length=bit_length))

    def encrypt(self, data: bytes) -> bytes:
        nonce = os.urandom(self.NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, data, self.associated_data)

    def decrypt(self, data: bytes) -> bytes:
        if len(data) < self.NONCE_SIZE:
            raise ValueError("Encrypted payload is shorter than the nonce")
        nonce, ciphertext = data[: self.NONCE_SIZE], data[self.NONCE_SIZE :]
        try:
            return self._aead.decrypt(nonce, ciphertext, self.associated_data)
        except InvalidTag as err:
            raise ValueError("Encrypted payload failed authentication") from err
