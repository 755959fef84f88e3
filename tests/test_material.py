import pytest

import bucket_material
from bucket_material import KEY_SIZE, NONCE_SIZE, EncryptionMaterial


def test_generate_sizes():
    mat = bucket_material.generate()
    assert len(mat.key) == KEY_SIZE == 32
    assert len(mat.nonce) == NONCE_SIZE == 24
    assert mat.key_hex == mat.key.hex()
    assert len(mat.nonce_hex) == 48


def test_two_runs_never_share_material():
    a, b = bucket_material.generate(), bucket_material.generate()
    assert a.key != b.key
    assert a.nonce != b.nonce


def test_rejects_wrong_sizes():
    with pytest.raises(ValueError):
        EncryptionMaterial(key=b"\x00" * 16, nonce=b"\x00" * 24)
    with pytest.raises(ValueError):
        EncryptionMaterial(key=b"\x00" * 32, nonce=b"\x00" * 12)


def test_repr_hides_key():
    mat = bucket_material.generate()
    assert mat.key_hex not in repr(mat)
    assert "redacted" in repr(mat)
