# -*- coding: utf-8 -*-
"""
bucket_store.py  (bucket/key storage capability)
------------------------------------------------
Every backend exposes the same four calls:

  list(bucket)             -> [key, ...]
  get(bucket, key)         -> bytes
  put(bucket, key, data)   -> ack message
  delete(bucket, key)      -> ack message

and reports any provider failure as StorageError (ListError for list) with
the provider's message. The pipeline never looks past that message.

Backends:
  S3ObjectStore        boto3, production
  FileObjectStore      a directory per bucket, for local runs
  InMemoryObjectStore  dict-backed fake with failure injection, for tests
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Opaque provider failure for one storage call."""


class ListError(StorageError):
    """The bucket could not be listed; nothing to iterate."""


class ObjectStore(Protocol):
    def list(self, bucket: str) -> List[str]: ...
    def get(self, bucket: str, key: str) -> bytes: ...
    def put(self, bucket: str, key: str, data: bytes) -> str: ...
    def delete(self, bucket: str, key: str) -> str: ...


# ── S3 ────────────────────────────────────────────────────────────────────────

def _aws_message(err: Exception, default: str) -> str:
    if isinstance(err, ClientError):
        error = err.response.get("Error", {})
        return error.get("Message") or error.get("Code") or default
    return str(err) or default


class S3ObjectStore:

    def __init__(self, client: Optional[Any] = None):
        self.client = client if client is not None else boto3.client("s3")

    def list(self, bucket: str) -> List[str]:
        logger.info("listing files from bucket %s", bucket)
        keys: List[str] = []
        try:
            pages = self.client.get_paginator("list_objects_v2").paginate(Bucket=bucket)
            for page in pages:
                keys.extend(obj["Key"] for obj in page.get("Contents", []) if obj.get("Key"))
        except (ClientError, BotoCoreError) as e:
            raise ListError(_aws_message(e, "Unknown bucket access error")) from e
        return keys

    def get(self, bucket: str, key: str) -> bytes:
        logger.info("get file bucket %s, key %s", bucket, key)
        try:
            data = self.client.get_object(Bucket=bucket, Key=key)["Body"].read()
        except (ClientError, BotoCoreError) as e:
            msg = _aws_message(e, "Unknown download error")
            logger.error("Error from aws when downloading: %s, key: %s", msg, key)
            raise StorageError(msg) from e
        logger.info("Object is downloaded, size is %d", len(data))
        return data

    def put(self, bucket: str, key: str, data: bytes) -> str:
        logger.info("put file bucket %s, key %s", bucket, key)
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(_aws_message(e, "Unknown upload error")) from e
        return f"Uploaded a file with key {key} into {bucket}"

    def delete(self, bucket: str, key: str) -> str:
        logger.info("delete file bucket %s, key %s", bucket, key)
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            msg = _aws_message(e, "Unknown delete error")
            logger.error("Error from aws when deleting: %s, key: %s", msg, key)
            raise StorageError(msg) from e
        return f"Deleted a file with key {key} from {bucket}"


# ── local directory ───────────────────────────────────────────────────────────

class FileObjectStore:
    """root_dir/<bucket>/<key>; keys may contain '/' and map to subdirectories."""

    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _bucket_dir(self, bucket: str) -> Path:
        return self.root_dir / bucket

    def _obj_path(self, bucket: str, key: str) -> Path:
        bucket_dir = self._bucket_dir(bucket).resolve()
        path = (bucket_dir / key).resolve()
        if bucket_dir not in path.parents:
            raise StorageError(f"key {key!r} escapes bucket {bucket!r}")
        return path

    def list(self, bucket: str) -> List[str]:
        bucket_dir = self._bucket_dir(bucket)
        if not bucket_dir.is_dir():
            raise ListError(f"bucket not found: {bucket}")
        return sorted(p.relative_to(bucket_dir).as_posix()
                      for p in bucket_dir.rglob("*") if p.is_file())

    def get(self, bucket: str, key: str) -> bytes:
        path = self._obj_path(bucket, key)
        if not path.is_file():
            raise StorageError(f"object not found: {bucket}/{key}")
        return path.read_bytes()

    def put(self, bucket: str, key: str, data: bytes) -> str:
        path = self._obj_path(bucket, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(str(e)) from e
        return f"Uploaded a file with key {key} into {bucket}"

    def delete(self, bucket: str, key: str) -> str:
        path = self._obj_path(bucket, key)
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(str(e)) from e
        return f"Deleted a file with key {key} from {bucket}"


# ── in-memory fake ────────────────────────────────────────────────────────────

class InMemoryObjectStore:
    """
    Dict-backed store for tests.

    fail(op, bucket, key, message) makes that one call raise StorageError
    (ListError for op="list", key ignored). Every call is appended to
    `calls` as (op, bucket, key).
    """

    def __init__(self, buckets: Optional[Dict[str, Dict[str, bytes]]] = None):
        self._db: Dict[str, Dict[str, bytes]] = {
            b: dict(objs) for b, objs in (buckets or {}).items()
        }
        self._failures: Dict[Tuple[str, str, Optional[str]], str] = {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    def fail(self, op: str, bucket: str, key: Optional[str] = None,
             message: str = "injected failure") -> None:
        self._failures[(op, bucket, None if op == "list" else key)] = message

    def objects(self, bucket: str) -> Dict[str, bytes]:
        return dict(self._db.get(bucket, {}))

    def count(self, op: str, key: Optional[str] = None) -> int:
        return sum(1 for c_op, _b, c_key in self.calls
                   if c_op == op and (key is None or c_key == key))

    def _enter(self, op: str, bucket: str, key: Optional[str]) -> None:
        self.calls.append((op, bucket, key))
        msg = self._failures.get((op, bucket, key))
        if msg is not None:
            raise (ListError if op == "list" else StorageError)(msg)

    def list(self, bucket: str) -> List[str]:
        self._enter("list", bucket, None)
        if bucket not in self._db:
            raise ListError(f"bucket not found: {bucket}")
        return list(self._db[bucket])

    def get(self, bucket: str, key: str) -> bytes:
        self._enter("get", bucket, key)
        try:
            return self._db[bucket][key]
        except KeyError:
            raise StorageError("not found") from None

    def put(self, bucket: str, key: str, data: bytes) -> str:
        self._enter("put", bucket, key)
        self._db.setdefault(bucket, {})[key] = bytes(data)
        return f"Uploaded a file with key {key} into {bucket}"

    def delete(self, bucket: str, key: str) -> str:
        self._enter("delete", bucket, key)
        self._db.get(bucket, {}).pop(key, None)
        return f"Deleted a file with key {key} from {bucket}"
