# -*- coding: utf-8 -*-
"""
bucket_settings.py  (environment configuration + logging setup)
---------------------------------------------------------------
Environment (a local .env is loaded first, never overriding real variables):

  BUCKET_NAME                  source bucket (required by the on-demand trigger)
  ENCRYPTED_BUCKET_NAME        explicit destination bucket (optional)
  ENCRYPTED_BUCKET_SUFFIX      suffix for a derived destination (default "-encrypted")
  CIPHER                       xchacha20poly1305 | aes256gcm
  LOG_LEVEL                    default INFO
  EXPOSE_MATERIAL_ON_FAILURE   "1"/"true" puts key+nonce in failure responses too
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from bucket_cipher import XCHACHA20_POLY1305, algorithms

DEFAULT_SUFFIX = "-encrypted"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(RuntimeError):
    """Required configuration is missing or invalid; the invocation cannot start."""


@dataclass(frozen=True)
class Settings:
    source_bucket:              Optional[str] = None
    dest_bucket_override:       Optional[str] = None
    encrypted_suffix:           str = DEFAULT_SUFFIX
    cipher:                     str = XCHACHA20_POLY1305
    log_level:                  str = "INFO"
    expose_material_on_failure: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None,
                 require_source: bool = True) -> "Settings":
        if env is None:
            load_dotenv(override=False)
            env = os.environ

        source = env.get("BUCKET_NAME", "").strip() or None
        if require_source and source is None:
            raise ConfigError("BUCKET_NAME must be set.")

        cipher = env.get("CIPHER", "").strip().lower() or XCHACHA20_POLY1305
        if cipher not in algorithms():
            raise ConfigError(f"CIPHER must be one of {', '.join(algorithms())}, got {cipher!r}")

        log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

        cfg = cls(
            source_bucket=source,
            dest_bucket_override=env.get("ENCRYPTED_BUCKET_NAME", "").strip() or None,
            encrypted_suffix=env.get("ENCRYPTED_BUCKET_SUFFIX") or DEFAULT_SUFFIX,
            cipher=cipher,
            log_level=log_level,
            expose_material_on_failure=env.get("EXPOSE_MATERIAL_ON_FAILURE", "").lower() in _TRUTHY,
        )
        if source is not None and cfg.dest_bucket_for(source) == source:
            raise ConfigError(f"encrypted bucket must differ from BUCKET_NAME, both are {source!r}")
        return cfg

    def dest_bucket_for(self, source_bucket: str) -> str:
        if self.dest_bucket_override:
            return self.dest_bucket_override
        return f"{source_bucket}{self.encrypted_suffix}"


def configure_logging(level: str = "INFO") -> None:
    """Message-only lines; the Lambda log sink adds its own timestamps."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    root.setLevel(level)
