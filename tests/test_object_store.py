import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from bucket_store import FileObjectStore, InMemoryObjectStore, ListError, S3ObjectStore, StorageError


@pytest.fixture
def s3():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stub:
        yield S3ObjectStore(client), stub
        stub.assert_no_pending_responses()


# ── S3 ────────────────────────────────────────────────────────────────────────

def test_s3_list_reads_every_page(s3):
    store, stub = s3
    stub.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "a.txt"}, {"Key": "b.txt"}],
         "IsTruncated": True, "NextContinuationToken": "page-2"},
    )
    stub.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "c.txt"}], "IsTruncated": False},
    )
    assert store.list("inbox") == ["a.txt", "b.txt", "c.txt"]


def test_s3_list_empty_bucket(s3):
    store, stub = s3
    stub.add_response("list_objects_v2", {"IsTruncated": False})
    assert store.list("inbox") == []


def test_s3_list_error(s3):
    store, stub = s3
    stub.add_client_error("list_objects_v2", service_error_code="NoSuchBucket",
                          service_message="The specified bucket does not exist")
    with pytest.raises(ListError, match="does not exist"):
        store.list("inbox")


def test_s3_get(s3):
    store, stub = s3
    stub.add_response("get_object", {"Body": StreamingBody(io.BytesIO(b"hello"), 5)})
    assert store.get("inbox", "a.txt") == b"hello"


def test_s3_get_error_is_storage_error(s3):
    store, stub = s3
    stub.add_client_error("get_object", service_error_code="NoSuchKey",
                          service_message="The specified key does not exist.")
    with pytest.raises(StorageError, match="specified key"):
        store.get("inbox", "a.txt")


def test_s3_put_and_delete(s3):
    store, stub = s3
    stub.add_response("put_object", {})
    stub.add_response("delete_object", {})
    assert store.put("inbox-encrypted", "a.txt", b"ct") == \
        "Uploaded a file with key a.txt into inbox-encrypted"
    assert store.delete("inbox", "a.txt") == "Deleted a file with key a.txt from inbox"


def test_s3_put_error(s3):
    store, stub = s3
    stub.add_client_error("put_object", service_error_code="AccessDenied",
                          service_message="Access Denied")
    with pytest.raises(StorageError, match="Access Denied"):
        store.put("inbox-encrypted", "a.txt", b"ct")


def test_s3_delete_error(s3):
    store, stub = s3
    stub.add_client_error("delete_object", service_error_code="AccessDenied",
                          service_message="Access Denied")
    with pytest.raises(StorageError):
        store.delete("inbox", "a.txt")


# ── directory store ───────────────────────────────────────────────────────────

def test_file_store_roundtrip(tmp_path):
    store = FileObjectStore(str(tmp_path))
    store.put("inbox", "docs/a.txt", b"hello")
    store.put("inbox", "b.txt", b"world")

    assert store.list("inbox") == ["b.txt", "docs/a.txt"]
    assert store.get("inbox", "docs/a.txt") == b"hello"
    assert (tmp_path / "inbox" / "docs" / "a.txt").read_bytes() == b"hello"

    store.delete("inbox", "docs/a.txt")
    assert store.list("inbox") == ["b.txt"]


def test_file_store_errors(tmp_path):
    store = FileObjectStore(str(tmp_path))
    with pytest.raises(ListError):
        store.list("nope")
    with pytest.raises(StorageError):
        store.get("inbox", "missing.txt")
    with pytest.raises(StorageError):
        store.delete("inbox", "missing.txt")
    with pytest.raises(StorageError, match="escapes"):
        store.put("inbox", "../outside.txt", b"x")


# ── in-memory fake ────────────────────────────────────────────────────────────

def test_in_memory_failure_injection():
    store = InMemoryObjectStore({"inbox": {"a.txt": b"hello"}})
    store.fail("get", "inbox", "a.txt", "boom")
    store.fail("list", "inbox", message="nope")

    with pytest.raises(StorageError, match="boom"):
        store.get("inbox", "a.txt")
    with pytest.raises(ListError):
        store.list("inbox")
    assert store.count("get") == 1 and store.count("list") == 1
