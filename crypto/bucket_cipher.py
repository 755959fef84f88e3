# -*- coding: utf-8 -*-
"""
bucket_cipher.py  (AEAD wrapper for whole objects)
--------------------------------------------------
Encrypts a full in-memory object under an EncryptionMaterial pair.

Algorithms:
  xchacha20poly1305  (default)  PyNaCl / libsodium, 24-byte nonce
  aes256gcm                     cryptography AESGCM, same 24-byte nonce

Output is ciphertext || 16-byte tag, no associated data, so any tampering
is caught by the matching AEAD decrypt. There is deliberately no decrypt
here: recovery is done out of band with the logged key/nonce.
"""

from __future__ import annotations

from typing import Callable, Dict

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from nacl.bindings import crypto_aead_xchacha20poly1305_ietf_encrypt
from nacl.exceptions import CryptoError

from bucket_material import EncryptionMaterial

XCHACHA20_POLY1305 = "xchacha20poly1305"
AES_256_GCM        = "aes256gcm"


class EncryptError(Exception):
    """The AEAD primitive refused the input (bad key/nonce size, oversize data, ...)."""


def _xchacha20_poly1305(plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
    return crypto_aead_xchacha20poly1305_ietf_encrypt(plaintext, None, nonce, key)

def _aes_256_gcm(plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
    return AESGCM(key).encrypt(nonce, plaintext, None)


_ALGORITHMS: Dict[str, Callable[[bytes, bytes, bytes], bytes]] = {
    XCHACHA20_POLY1305: _xchacha20_poly1305,
    AES_256_GCM:        _aes_256_gcm,
}


def algorithms() -> list:
    return sorted(_ALGORITHMS)


class ObjectCipher:

    def __init__(self, algorithm: str = XCHACHA20_POLY1305):
        if algorithm not in _ALGORITHMS:
            raise ValueError(
                f"unknown cipher {algorithm!r}; expected one of {', '.join(algorithms())}"
            )
        self.algorithm = algorithm
        self._encrypt  = _ALGORITHMS[algorithm]

    def encrypt(self, plaintext: bytes, material: EncryptionMaterial) -> bytes:
        """Encrypt the whole buffer in one call; failures surface as EncryptError."""
        try:
            return self._encrypt(plaintext, material.key, material.nonce)
        except (CryptoError, TypeError, ValueError, OverflowError) as e:
            raise EncryptError(f"Encrypting small file: {e}") from e
