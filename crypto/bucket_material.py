# -*- coding: utf-8 -*-
"""
bucket_material.py  (per-invocation encryption material)
--------------------------------------------------------
One (key, nonce) pair is drawn from the OS CSPRNG at the top of every
invocation and shared by every object processed in it. Nothing here is
cached or module-global: a second call always yields fresh bytes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

KEY_SIZE   = 32
NONCE_SIZE = 24


@dataclass(frozen=True)
class EncryptionMaterial:
    key:   bytes
    nonce: bytes

    def __post_init__(self) -> None:
        if len(self.key) != KEY_SIZE:
            raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(self.key)}")
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}")

    @property
    def key_hex(self) -> str:
        return self.key.hex()

    @property
    def nonce_hex(self) -> str:
        return self.nonce.hex()

    def __repr__(self) -> str:
        # raw key bytes stay out of tracebacks and debug dumps
        return "EncryptionMaterial(key=<redacted>, nonce=<redacted>)"


def generate() -> EncryptionMaterial:
    """Draw a fresh 32-byte key and 24-byte nonce from os.urandom."""
    return EncryptionMaterial(key=os.urandom(KEY_SIZE), nonce=os.urandom(NONCE_SIZE))
