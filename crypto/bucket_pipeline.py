# -*- coding: utf-8 -*-
"""
bucket_pipeline.py  (fetch -> encrypt -> store -> delete, per object)
---------------------------------------------------------------------
For every key, in the order given:

  1. get(source, key)            fail -> FetchFailed,   next key
  2. cipher.encrypt(data, mat)   fail -> EncryptFailed, next key
  3. put(dest, key, ciphertext)  fail -> StoreFailed,   next key
  4. delete(source, key)         fail -> DeleteFailed
  5. Success

Each stage runs at most once. The source object is only ever deleted after
its ciphertext was stored; a failed delete leaves a duplicate, never a loss.
One key's failure never stops the batch. All outcomes are folded into a
BatchSummary which carries the hex key/nonce so stored objects stay
recoverable even when part of the batch failed.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

import bucket_material as material_mod
from bucket_material import EncryptionMaterial
from bucket_cipher import EncryptError, ObjectCipher
from bucket_store import ObjectStore, StorageError

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = (
    "Encountered errors while processing files! "
    "Please investigate the logs for more details!"
)


class SameBucketError(ValueError):
    """Source and destination name the same bucket; delete would remove the stored ciphertext."""


def check_buckets(source_bucket: str, dest_bucket: str) -> None:
    if source_bucket == dest_bucket:
        raise SameBucketError(f"destination bucket {dest_bucket!r} is the source bucket")


class Stage(str, enum.Enum):
    FETCH   = "fetch"
    ENCRYPT = "encrypt"
    STORE   = "store"
    DELETE  = "delete"


_FAILED_STATUS = {
    Stage.FETCH:   "FetchFailed",
    Stage.ENCRYPT: "EncryptFailed",
    Stage.STORE:   "StoreFailed",
    Stage.DELETE:  "DeleteFailed",
}


# ── outcome model ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProcessingOutcome:
    key:          str
    failed_stage: Optional[Stage] = None
    reason:       Optional[str] = None

    @classmethod
    def success(cls, key: str) -> "ProcessingOutcome":
        return cls(key)

    @classmethod
    def failed(cls, key: str, stage: Stage, reason: str) -> "ProcessingOutcome":
        return cls(key, stage, reason)

    @property
    def ok(self) -> bool:
        return self.failed_stage is None

    @property
    def status(self) -> str:
        return "Success" if self.ok else _FAILED_STATUS[self.failed_stage]


@dataclass(frozen=True)
class BatchSummary:
    source_bucket: str
    dest_bucket:   str
    key_hex:       str
    nonce_hex:     str
    outcomes:      Tuple[ProcessingOutcome, ...] = field(default_factory=tuple)

    @property
    def has_failures(self) -> bool:
        return any(not o.ok for o in self.outcomes)

    @property
    def succeeded(self) -> List[ProcessingOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[ProcessingOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def with_outcomes(self, extra: Iterable[ProcessingOutcome]) -> "BatchSummary":
        return replace(self, outcomes=self.outcomes + tuple(extra))

    def counts(self) -> Dict[str, int]:
        return dict(Counter(o.status for o in self.outcomes))

    def success_message(self) -> str:
        return (f"Successfully encrypted all files with enc_key={self.key_hex} "
                f"and nonce={self.nonce_hex}")

    def message(self, include_material_on_failure: bool = False) -> str:
        """Operator-facing status line; key material is left out of failures unless asked."""
        if not self.has_failures:
            return self.success_message()
        if include_material_on_failure:
            return (f"{FAILURE_MESSAGE} ({len(self.failed)} of {len(self.outcomes)} failed; "
                    f"enc_key={self.key_hex} nonce={self.nonce_hex})")
        return FAILURE_MESSAGE


# ── orchestrator ──────────────────────────────────────────────────────────────

class Pipeline:

    def __init__(self, store: ObjectStore, cipher: Optional[ObjectCipher] = None):
        self.store  = store
        self.cipher = cipher if cipher is not None else ObjectCipher()

    def process(self, source_bucket: str, dest_bucket: str, key: str,
                material: EncryptionMaterial) -> ProcessingOutcome:
        try:
            data = self.store.get(source_bucket, key)
        except StorageError as e:
            logger.error("Can not get file %s from bucket %s: %s", key, source_bucket, e)
            return ProcessingOutcome.failed(key, Stage.FETCH, str(e))

        try:
            ciphertext = self.cipher.encrypt(data, material)
        except EncryptError as e:
            logger.error("Can not create encrypted file %s from bucket %s: %s",
                         key, source_bucket, e)
            return ProcessingOutcome.failed(key, Stage.ENCRYPT, str(e))

        logger.info("Successfully encrypted file %s with encryption key %s and nonce %s",
                    key, material.key_hex, material.nonce_hex)

        try:
            logger.info(self.store.put(dest_bucket, key, ciphertext))
        except StorageError as e:
            # the plaintext original stays put: no ciphertext, no delete
            logger.error("Can not upload encrypted file %s into bucket %s: %s",
                         key, dest_bucket, e)
            return ProcessingOutcome.failed(key, Stage.STORE, str(e))

        try:
            logger.info(self.store.delete(source_bucket, key))
        except StorageError as e:
            logger.error("Can not delete unencrypted file %s from bucket %s: %s",
                         key, source_bucket, e)
            return ProcessingOutcome.failed(key, Stage.DELETE, str(e))

        return ProcessingOutcome.success(key)

    def run(self, source_bucket: str, dest_bucket: str, keys: Iterable[str],
            material: EncryptionMaterial) -> BatchSummary:
        check_buckets(source_bucket, dest_bucket)
        outcomes = tuple(self.process(source_bucket, dest_bucket, key, material)
                         for key in keys)
        summary = BatchSummary(
            source_bucket=source_bucket,
            dest_bucket=dest_bucket,
            key_hex=material.key_hex,
            nonce_hex=material.nonce_hex,
            outcomes=outcomes,
        )
        log = logger.error if summary.has_failures else logger.info
        log("Processed %d files from %s into %s (%s) with enc_key=%s nonce=%s",
            len(outcomes), source_bucket, dest_bucket, summary.counts(),
            summary.key_hex, summary.nonce_hex)
        return summary


def encrypt_bucket(store: ObjectStore, source_bucket: str, dest_bucket: str,
                   cipher: Optional[ObjectCipher] = None,
                   material: Optional[EncryptionMaterial] = None) -> BatchSummary:
    """List the whole source bucket and push every key through the pipeline.

    ListError propagates: without a listing there is nothing to process.
    """
    check_buckets(source_bucket, dest_bucket)
    try:
        keys = store.list(source_bucket)
    except StorageError:
        logger.error("Can not list files from bucket %s", source_bucket)
        raise
    if material is None:
        material = material_mod.generate()
    return Pipeline(store, cipher).run(source_bucket, dest_bucket, keys, material)
