from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List

import redis
from pydantic import ValidationError
from tqdm import tqdm

from src.exception_handler import ErrorHandler
from src.snippet import Snippet, SnippetDraft
from src.store import SnippetStore, StoreConfig


logger = logging.getLogger("snippet_manager")


def load_records(path: Path) -> List[Any]:
    """Read an export file holding a list of snippet documents.

    Accepts either a bare JSON list or an object with a ``snippets`` list.
    """
    with path.open("r", encoding="utf-8") as file_handle:
        data = json.load(file_handle)
    if isinstance(data, dict):
        data = data.get("snippets", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of snippets in {path}")
    return data


def build_snippet(record: Dict[str, Any], user_id: str) -> Snippet:
    """Validate an exported document and turn it into a storable snippet."""
    draft = SnippetDraft.model_validate(record)
    snippet_data: Dict[str, Any] = {
        "id": str(record.get("id") or uuid.uuid4().hex),
        "title": draft.title,
        "code": draft.code,
        "language": draft.language,
        "tags": draft.tags,
        "user_id": user_id,
    }
    created_at = record.get("createdAt", record.get("created_at"))
    if created_at is not None:
        snippet_data["created_at"] = created_at
    return Snippet.model_validate(snippet_data)


def import_records(
    records: Iterable[Any],
    store: SnippetStore,
    user_id: str,
    error_handler: ErrorHandler,
    *,
    dry_run: bool = False,
    progress: bool = True,
) -> int:
    imported = 0
    for index, record in enumerate(tqdm(records, desc="Importing", unit="snippet", disable=not progress)):
        title = record.get("title") if isinstance(record, dict) else None
        if not isinstance(record, dict):
            error_handler.collect_record_error(
                TypeError("Snippet record must be an object"), index, "validate"
            )
            continue
        try:
            snippet = build_snippet(record, user_id)
        except ValidationError as exc:
            error_handler.collect_record_error(exc, index, "validate", title=title)
            continue

        if dry_run:
            imported += 1
            continue

        try:
            store.save(snippet)
        except redis.RedisError as exc:
            error_handler.collect_record_error(exc, index, "save", title=title)
            if not error_handler.should_retry(exc):
                raise
            continue
        imported += 1
    return imported


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Import exported snippet documents into the snippet store"
    )
    parser.add_argument(
        "path",
        help="JSON file with a list of snippet documents",
    )
    parser.add_argument(
        "--user-id",
        dest="user_id",
        required=True,
        help="Owner assigned to every imported snippet",
    )
    parser.add_argument(
        "--redis-url",
        dest="redis_url",
        default=None,
        help="Redis URL (defaults to REDIS_URL env variable)",
    )
    parser.add_argument(
        "--namespace",
        default=None,
        help="Key namespace (defaults to SNIPPET_NAMESPACE or 'snippets')",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the records without writing them",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    path = Path(args.path)
    if not path.exists():
        print(f"Error: Path does not exist: {args.path}", file=sys.stderr)
        sys.exit(1)

    error_handler = ErrorHandler(args.log_level)

    config = StoreConfig(
        redis_url=args.redis_url or os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
        namespace=args.namespace or os.getenv("SNIPPET_NAMESPACE", "snippets"),
    )
    store = SnippetStore(redis.Redis.from_url(config.redis_url), config)

    try:
        records = load_records(path)
        imported = import_records(
            records,
            store,
            args.user_id,
            error_handler,
            dry_run=args.dry_run,
        )
    except KeyboardInterrupt:
        print("\n⚠️ Import interrupted", file=sys.stderr)
        sys.exit(1)
    except Exception:
        logger.exception("Failed to import snippets")
        print("❌ Import failed. See log for details.", file=sys.stderr)
        sys.exit(1)

    verb = "Validated" if args.dry_run else "Imported"
    tqdm.write(f"✅ {verb} {imported} of {len(records)} snippets")

    report = error_handler.format_error_report()
    if report:
        tqdm.write(report)
        sys.exit(1)


if __name__ == "__main__":
    main()
