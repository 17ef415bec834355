"""hdfsblob CLI entry points.

Maps argparse commands onto BlobStore / BlobStoreConnection calls.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from hdfsblob.config import StoreConfig
from hdfsblob.exceptions import BlobStoreError
from hdfsblob.fs.utils import copy_stream
from hdfsblob.store import BlobStore

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hdfsblob.connection import BlobStoreConnection


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser."""
    parser = argparse.ArgumentParser(prog="hdfsblob", description="Blob store on HDFS")
    parser.add_argument("--store", help="Store id; defaults to $HDFSBLOB_STORE_ID")
    parser.add_argument("--scheme", help="Blob id scheme; defaults to $HDFSBLOB_ID_SCHEME")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls = subparsers.add_parser("ls", help="List blob ids")
    ls.add_argument("prefix", nargs="?", default="", help="Only ids whose name starts with this")

    get = subparsers.add_parser("get", help="Write a blob's content to stdout or a file")
    get.add_argument("blob_id")
    get.add_argument("-o", "--output", help="Destination file (default: stdout)")

    put = subparsers.add_parser("put", help="Store a local file as a blob")
    put.add_argument("file")
    put.add_argument("--id", dest="blob_id", help="Blob id (default: allocate a new one)")
    put.add_argument("--overwrite", action="store_true", help="Replace an existing blob")

    mv = subparsers.add_parser("mv", help="Move a blob to a new id")
    mv.add_argument("src")
    mv.add_argument("dest", nargs="?", help="Target id (default: allocate a new one)")

    rm = subparsers.add_parser("rm", help="Delete a blob")
    rm.add_argument("blob_id")

    stat = subparsers.add_parser("stat", help="Show a blob's path and size")
    stat.add_argument("blob_id")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the hdfsblob CLI.  Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        store = _build_store(args.store, args.scheme)
        with store.open_connection() as conn:
            return _dispatch(conn, args)
    except BlobStoreError as e:
        print(f"hdfsblob: {e}", file=sys.stderr)
        return 1


def _build_store(store_id: str | None, scheme: str | None) -> BlobStore:
    config = StoreConfig(store_id=store_id) if store_id else StoreConfig.from_env()
    if scheme:
        config = StoreConfig(
            store_id=config.store_id,
            id_scheme=scheme,
            storage_options=config.storage_options,
            buffer_size=config.buffer_size,
        )
    return BlobStore(config)


def _dispatch(conn: BlobStoreConnection, args: argparse.Namespace) -> int:
    if args.command == "ls":
        for blob_id in conn.list_blob_ids(args.prefix):
            print(blob_id)
        return 0
    if args.command == "get":
        return _run_get_command(conn, args)
    if args.command == "put":
        return _run_put_command(conn, args)
    if args.command == "mv":
        print(conn.get_blob(args.src).move_to(args.dest).id)
        return 0
    if args.command == "rm":
        conn.get_blob(args.blob_id).delete()
        return 0
    if args.command == "stat":
        blob = conn.get_blob(args.blob_id)
        print(f"id:   {blob.id}\npath: {blob.path}\nsize: {blob.get_size()}")
        return 0
    return 2


def _run_get_command(conn: BlobStoreConnection, args: argparse.Namespace) -> int:
    blob = conn.get_blob(args.blob_id)
    with blob.open_input_stream() as src:
        try:
            if args.output:
                with open(args.output, "wb") as dest:
                    copy_stream(src, dest, conn.store.config.buffer_size)
            else:
                copy_stream(src, sys.stdout.buffer, conn.store.config.buffer_size)
                sys.stdout.flush()
        except OSError as e:
            print(f"hdfsblob: cannot copy {blob.id}: {e}", file=sys.stderr)
            return 1
    return 0


def _run_put_command(conn: BlobStoreConnection, args: argparse.Namespace) -> int:
    try:
        source = open(args.file, "rb")  # noqa: SIM115
    except OSError as e:
        print(f"hdfsblob: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    if args.blob_id is None:
        blob = conn.create_blob(source)
    else:
        with source:
            blob = conn.get_blob(args.blob_id)
            try:
                with blob.open_output_stream(overwrite=args.overwrite) as dest:
                    copy_stream(source, dest, conn.store.config.buffer_size)
            except OSError as e:
                print(f"hdfsblob: cannot copy {args.file}: {e}", file=sys.stderr)
                return 1
    print(blob.id)
    return 0
