import pytest

from bucket_settings import ConfigError, Settings


def test_defaults_derive_destination():
    cfg = Settings.from_env({"BUCKET_NAME": "inbox"})
    assert cfg.source_bucket == "inbox"
    assert cfg.dest_bucket_for("inbox") == "inbox-encrypted"
    assert cfg.cipher == "xchacha20poly1305"
    assert cfg.expose_material_on_failure is False


def test_explicit_destination_and_suffix():
    cfg = Settings.from_env({"BUCKET_NAME": "inbox", "ENCRYPTED_BUCKET_SUFFIX": "-vault"})
    assert cfg.dest_bucket_for("inbox") == "inbox-vault"

    cfg = Settings.from_env({"BUCKET_NAME": "inbox", "ENCRYPTED_BUCKET_NAME": "vault"})
    assert cfg.dest_bucket_for("anything") == "vault"


def test_missing_bucket_is_fatal():
    with pytest.raises(ConfigError):
        Settings.from_env({})
    assert Settings.from_env({}, require_source=False).source_bucket is None


def test_cipher_choice():
    assert Settings.from_env({"BUCKET_NAME": "b", "CIPHER": "AES256GCM"}).cipher == "aes256gcm"
    with pytest.raises(ConfigError):
        Settings.from_env({"BUCKET_NAME": "b", "CIPHER": "des"})


def test_destination_equal_to_source_is_fatal():
    with pytest.raises(ConfigError, match="must differ"):
        Settings.from_env({"BUCKET_NAME": "inbox", "ENCRYPTED_BUCKET_NAME": "inbox"})
    # without a source bucket there is nothing to compare yet
    cfg = Settings.from_env({"ENCRYPTED_BUCKET_NAME": "vault"}, require_source=False)
    assert cfg.dest_bucket_for("vault") == "vault"


def test_log_level_is_validated():
    assert Settings.from_env({"BUCKET_NAME": "b", "LOG_LEVEL": "debug"}).log_level == "DEBUG"
    with pytest.raises(ConfigError, match="LOG_LEVEL"):
        Settings.from_env({"BUCKET_NAME": "b", "LOG_LEVEL": "verbose"})
