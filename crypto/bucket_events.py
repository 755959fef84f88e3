# -*- coding: utf-8 -*-
"""
bucket_events.py  (event trigger: S3 ObjectCreated notifications)
------------------------------------------------------------------
Each record names one bucket/key. Records that are not ObjectCreated:* or
lack a bucket or key are skipped (not failures). Valid keys are grouped per
source bucket and pushed through the pipeline under a single key/nonce for
the whole invocation. A bucket is never its own destination, and two
source buckets never write the same destination object in one batch.
Nothing is returned; a failed key makes the invocation raise so the
runtime reports it as failed.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import bucket_material
from bucket_cipher import ObjectCipher
from bucket_store import ObjectStore, S3ObjectStore
from bucket_pipeline import BatchSummary, Pipeline, ProcessingOutcome, Stage
from bucket_settings import Settings, configure_logging

logger = logging.getLogger(__name__)

CREATED_PREFIX = "ObjectCreated"


class BatchFailedError(RuntimeError):
    """At least one object in the event batch did not make it through the pipeline."""

    def __init__(self, summaries: List[BatchSummary]):
        self.summaries = summaries
        failed = [f"{s.source_bucket}/{o.key} ({o.status})" for s in summaries for o in s.failed]
        super().__init__(f"{len(failed)} object(s) failed: {', '.join(failed)}")


def object_ref(record: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """(bucket, key) for a usable creation record, else None."""
    event_name = record.get("eventName") or ""
    if not event_name.startswith(CREATED_PREFIX):
        logger.info("Skipping record: wrong event %r", event_name)
        return None

    s3 = record.get("s3") or {}
    bucket = (s3.get("bucket") or {}).get("name") or ""
    key    = urllib.parse.unquote_plus((s3.get("object") or {}).get("key") or "")
    if not bucket:
        logger.info("Skipping record: no bucket name")
        return None
    if not key:
        logger.info("Skipping record: no object key")
        return None
    return bucket, key


def group_by_bucket(records: List[Dict[str, Any]], cfg: Optional[Settings] = None
                    ) -> Tuple[Dict[str, List[str]], Dict[str, List[ProcessingOutcome]]]:
    """Keys to process per source bucket, plus records refused before any storage call.

    A record whose bucket is its own destination is skipped. A record whose
    destination object was already claimed by another bucket in this batch
    (possible with ENCRYPTED_BUCKET_NAME) is refused as StoreFailed and its
    source is left untouched.
    """
    cfg = cfg if cfg is not None else Settings()
    grouped:  Dict[str, List[str]] = {}
    rejected: Dict[str, List[ProcessingOutcome]] = {}
    claimed:  Dict[Tuple[str, str], str] = {}

    for record in records:
        ref = object_ref(record)
        if ref is None:
            continue
        bucket, key = ref
        dest = cfg.dest_bucket_for(bucket)
        if dest == bucket:
            logger.warning("Skipping record %s/%s: bucket is its own encryption destination",
                           bucket, key)
            continue

        owner = claimed.setdefault((dest, key), bucket)
        if owner != bucket:
            refused = rejected.setdefault(bucket, [])
            if all(o.key != key for o in refused):
                reason = f"destination {dest}/{key} already claimed by {owner}/{key} in this batch"
                logger.error("Refusing %s/%s: %s", bucket, key, reason)
                refused.append(ProcessingOutcome.failed(key, Stage.STORE, reason))
            continue

        keys = grouped.setdefault(bucket, [])
        if key not in keys:
            keys.append(key)
    return grouped, rejected


def handler(event: Dict[str, Any], context: Any,
            store: Optional[ObjectStore] = None) -> None:
    cfg = Settings.from_env(require_source=False)
    configure_logging(cfg.log_level)

    grouped, rejected = group_by_bucket(event.get("Records") or [], cfg)
    if not grouped and not rejected:
        logger.info("No ObjectCreated records to process")
        return None

    mat = bucket_material.generate()
    pipe = Pipeline(store if store is not None else S3ObjectStore(), ObjectCipher(cfg.cipher))
    summaries = []
    for bucket in dict.fromkeys(list(grouped) + list(rejected)):
        summary = pipe.run(bucket, cfg.dest_bucket_for(bucket), grouped.get(bucket, []), mat)
        summaries.append(summary.with_outcomes(rejected.get(bucket, [])))

    if any(s.has_failures for s in summaries):
        raise BatchFailedError(summaries)
    return None
