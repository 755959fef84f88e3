# -*- coding: utf-8 -*-
"""
bucket_cli.py  (run the bucket scan from a shell)
-------------------------------------------------
Same flow as the on-demand Lambda, against S3 or a local directory store.

Commands:
  python bucket_cli.py scan   --bucket my-bucket
  python bucket_cli.py scan   --bucket inbox --store_dir data --cipher aes256gcm
  python bucket_cli.py scan   --bucket inbox --dest vault --store_dir data
  python bucket_cli.py keygen

`scan` prints the status message and exits 1 if any object failed.
`keygen` prints a fresh key/nonce pair in hex.
"""

from __future__ import annotations

import argparse
import sys

import bucket_material
from bucket_cipher import XCHACHA20_POLY1305, ObjectCipher, algorithms
from bucket_store import FileObjectStore, ListError, S3ObjectStore
from bucket_pipeline import SameBucketError, encrypt_bucket
from bucket_settings import DEFAULT_SUFFIX, configure_logging


def cmd_scan(args: argparse.Namespace) -> int:
    store = FileObjectStore(args.store_dir) if args.store_dir else S3ObjectStore()
    dest  = args.dest or f"{args.bucket}{args.suffix}"

    try:
        summary = encrypt_bucket(store, args.bucket, dest, cipher=ObjectCipher(args.cipher))
    except SameBucketError as e:
        print(f"[SCAN] Refusing to run: {e}", file=sys.stderr)
        return 2
    except ListError as e:
        print(f"[SCAN] Can not list bucket {args.bucket}: {e}", file=sys.stderr)
        return 2

    for outcome in summary.outcomes:
        detail = f"  ({outcome.reason})" if outcome.reason else ""
        print(f"[SCAN] {outcome.key}: {outcome.status}{detail}")
    print(summary.message(include_material_on_failure=args.show_material))
    return 1 if summary.has_failures else 0


def cmd_keygen(args: argparse.Namespace) -> int:
    mat = bucket_material.generate()
    print(f"enc_key={mat.key_hex}")
    print(f"nonce={mat.nonce_hex}")
    return 0


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Encrypt every object of a bucket")
    sub = ap.add_subparsers(dest="cmd", required=True)

    # --- scan ---
    s0 = sub.add_parser("scan", help="Encrypt, store and delete every object in a bucket")
    s0.add_argument("--bucket",    required=True, help="Source bucket")
    s0.add_argument("--dest",      default=None,
                    help="Destination bucket (default: <bucket><suffix>)")
    s0.add_argument("--suffix",    default=DEFAULT_SUFFIX,
                    help=f"Destination suffix (default: {DEFAULT_SUFFIX})")
    s0.add_argument("--store_dir", default=None,
                    help="Use a local directory store instead of S3")
    s0.add_argument("--cipher",    default=XCHACHA20_POLY1305, choices=algorithms())
    s0.add_argument("--show_material", action="store_true",
                    help="Print key/nonce even when some objects failed")
    s0.add_argument("--log_level", default="WARNING")
    s0.set_defaults(func=cmd_scan)

    # --- keygen ---
    s1 = sub.add_parser("keygen", help="Print a fresh key/nonce pair")
    s1.set_defaults(func=cmd_keygen, log_level="WARNING")

    args = ap.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
