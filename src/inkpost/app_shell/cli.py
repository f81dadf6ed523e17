import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import httpx

from inkpost.adapters.api_images import ApiImageDeleter
from inkpost.adapters.draft_storage import JsonFileDraftStorage
from inkpost.components.drafts import (
    DEFAULT_DRAFT_KEY,
    BlockNotFoundError,
    DraftStore,
    discard_block,
)
from inkpost.components.render import OutlineNode, build_outline, extract_headings
from inkpost.domain.blocks import BLOCK_TYPES

logger = logging.getLogger("inkpost.cli")


def default_drafts_dir() -> Path:
    return Path(os.environ.get("INKPOST_DATA_DIR", "./data")) / "drafts"


def get_store(args: argparse.Namespace) -> DraftStore:
    return DraftStore(JsonFileDraftStorage(args.drafts_dir), key=args.key)


def _read_payload(args: argparse.Namespace) -> Any:
    raw = Path(args.file).read_text() if args.file else args.json
    return json.loads(raw)


def print_draft(store: DraftStore) -> None:
    draft = store.snapshot()
    print(f"Title:       {draft.title or '-'}")
    print(f"Slug:        {draft.slug or '-'}")
    print(f"Description: {draft.short_description or '-'}")
    print(f"Tags:        {', '.join(draft.tags) or '-'}")
    print(f"Thumbnail:   {draft.thumbnail_key or '-'}")
    print(f"Blocks ({len(draft.blocks)}):")
    for index, block in enumerate(draft.blocks):
        print(f"  [{index}] {block.type:<10} {block.id}")


def print_outline(nodes: list[OutlineNode], depth: int = 0) -> None:
    for node in nodes:
        print(f"{'  ' * depth}- {node.heading.text}  #{node.heading.id}")
        print_outline(node.children, depth + 1)


def handle_meta(store: DraftStore, args: argparse.Namespace) -> None:
    kwargs: dict[str, Any] = {
        "title": args.title,
        "slug": args.slug,
        "short_description": args.description,
        "tags": args.tags,
    }
    if args.thumbnail is not None:
        kwargs["thumbnail_key"] = args.thumbnail
    store.update_metadata(**kwargs)
    print_draft(store)


def _session_token(args: argparse.Namespace) -> str | None:
    return args.token or os.environ.get("INKPOST_TOKEN")


def handle_rm(store: DraftStore, args: argparse.Namespace) -> None:
    token = _session_token(args)
    images = ApiImageDeleter(args.api, token) if token else None
    removed = discard_block(store, args.block_id, images)
    if removed.image_key and images is None:
        logger.warning("No session token; image %s was left in the store", removed.image_key)
    print(f"Removed {removed.type} block {removed.id}")


def handle_publish(store: DraftStore, args: argparse.Namespace) -> None:
    token = _session_token(args)
    if not token:
        logger.error("A session token is required (--token or INKPOST_TOKEN).")
        sys.exit(1)

    url = f"{args.api.rstrip('/')}/api/blogs/create"
    try:
        response = httpx.post(
            url,
            json=store.to_submission(),
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        logger.error("Publish request failed: %s", e)
        sys.exit(1)

    if response.status_code >= 400:
        logger.error("Publish rejected (%s): %s", response.status_code, response.text)
        sys.exit(1)

    blog = response.json().get("blog", {})
    print(f"Published: /blog/{blog.get('slug')}")
    if not args.keep:
        store.clear()


def _add_api_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api", default=os.environ.get("INKPOST_API", "http://localhost:8000"))
    parser.add_argument("--token", help="Session token (default: INKPOST_TOKEN)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Edit and publish inkpost drafts")
    parser.add_argument(
        "--drafts-dir", type=Path, default=default_drafts_dir(), help="Draft storage directory"
    )
    parser.add_argument("--key", default=DEFAULT_DRAFT_KEY, help="Draft name")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("new", help="Start a fresh draft (discards the current one)")
    subparsers.add_parser("clear", help="Delete the draft")
    subparsers.add_parser("show", help="Print metadata and blocks")
    subparsers.add_parser("outline", help="Print the heading outline")

    meta = subparsers.add_parser("meta", help="Set post metadata")
    meta.add_argument("--title")
    meta.add_argument("--slug")
    meta.add_argument("--description")
    meta.add_argument("--tags", help="Comma-separated tags")
    meta.add_argument("--thumbnail", help="Thumbnail image key ('' to clear)")

    add = subparsers.add_parser("add", help="Insert an empty block")
    add.add_argument("type", choices=BLOCK_TYPES)
    add.add_argument("--at", type=int, help="Position (default: end)")

    set_ = subparsers.add_parser("set", help="Replace a block's payload")
    set_.add_argument("block_id")
    source = set_.add_mutually_exclusive_group(required=True)
    source.add_argument("--json", help="Payload as a JSON string")
    source.add_argument("--file", help="Path to a JSON payload file")

    move = subparsers.add_parser("move", help="Move a block to a new position")
    move.add_argument("block_id")
    move.add_argument("index", type=int)

    rm = subparsers.add_parser("rm", help="Remove a block")
    rm.add_argument("block_id")
    _add_api_args(rm)

    publish = subparsers.add_parser("publish", help="Submit the draft to the API")
    _add_api_args(publish)
    publish.add_argument("--keep", action="store_true", help="Keep the draft after publishing")

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    store = get_store(args)

    try:
        if args.command in ("new", "clear"):
            store.clear()
            print("Draft cleared.")
        elif args.command == "show":
            print_draft(store)
        elif args.command == "outline":
            draft = store.snapshot()
            print_outline(build_outline(extract_headings(draft.blocks, draft.payloads)))
        elif args.command == "meta":
            handle_meta(store, args)
        elif args.command == "add":
            block_id = store.insert_block(args.type, args.at)
            print(block_id)
        elif args.command == "set":
            store.update_block_payload(args.block_id, _read_payload(args))
            print(f"Updated {args.block_id}")
        elif args.command == "move":
            store.reorder_blocks(args.block_id, args.index)
            print_draft(store)
        elif args.command == "rm":
            handle_rm(store, args)
        elif args.command == "publish":
            handle_publish(store, args)
    except BlockNotFoundError as e:
        logger.error("%s", e)
        sys.exit(1)
    except (ValueError, OSError) as e:
        # BlockPayloadError, UnknownBlockTypeError and bad JSON are ValueErrors
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
