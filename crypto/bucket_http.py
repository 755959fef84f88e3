# -*- coding: utf-8 -*-
"""
bucket_http.py  (on-demand trigger: HTTP request to the Lambda function URL)
----------------------------------------------------------------------------
Scans every object in BUCKET_NAME and for each one:
  * downloads it
  * encrypts it with this invocation's key/nonce
  * uploads the ciphertext to the encrypted bucket
  * deletes the unencrypted original

Deployment notes:
  * object keys should not contain odd characters
  * the encrypted bucket (BUCKET_NAME + "-encrypted", or ENCRYPTED_BUCKET_NAME)
    must exist and the function needs put on it and list/get/delete on the source
  * logs contain the hex key/nonce: restrict who can read them
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from bucket_cipher import ObjectCipher
from bucket_store import ObjectStore, S3ObjectStore
from bucket_pipeline import encrypt_bucket
from bucket_settings import Settings, configure_logging

logger = logging.getLogger(__name__)


def handler(event: Dict[str, Any], context: Any,
            store: Optional[ObjectStore] = None) -> Dict[str, Any]:
    cfg = Settings.from_env()
    configure_logging(cfg.log_level)

    source = cfg.source_bucket
    dest   = cfg.dest_bucket_for(source)
    logger.info("On-demand encryption of bucket %s into %s", source, dest)

    summary = encrypt_bucket(
        store if store is not None else S3ObjectStore(),
        source,
        dest,
        cipher=ObjectCipher(cfg.cipher),
    )

    return {
        "statusCode": 200,
        "headers":    {"content-type": "text/html"},
        "body":       summary.message(cfg.expose_material_on_failure),
    }
