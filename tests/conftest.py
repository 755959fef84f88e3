import pytest
from nacl.bindings import crypto_aead_xchacha20poly1305_ietf_decrypt

from bucket_store import InMemoryObjectStore

ENV_VARS = (
    "BUCKET_NAME",
    "ENCRYPTED_BUCKET_NAME",
    "ENCRYPTED_BUCKET_SUFFIX",
    "CIPHER",
    "LOG_LEVEL",
    "EXPOSE_MATERIAL_ON_FAILURE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store():
    return InMemoryObjectStore({
        "inbox": {"a.txt": b"hello", "b.txt": b"world"},
        "inbox-encrypted": {},
    })


def xchacha_decrypt(ciphertext: bytes, key: bytes, nonce: bytes) -> bytes:
    return crypto_aead_xchacha20poly1305_ietf_decrypt(ciphertext, None, nonce, key)
