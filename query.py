from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

import redis

from src.snippet import Snippet, SnippetQuery, SortKey, apply_query
from src.store import SnippetStore, StoreConfig


logger = logging.getLogger("snippet_manager")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="List a user's stored snippets with the dashboard filters",
    )
    parser.add_argument(
        "user_id",
        help="Owner whose snippets are listed",
    )
    parser.add_argument(
        "--search",
        "-q",
        default="",
        help="Case-insensitive text matched against titles and tags",
    )
    parser.add_argument(
        "--language",
        default="All",
        help="Language filter, case-insensitive (default: All)",
    )
    parser.add_argument(
        "--select",
        dest="selected_languages",
        action="append",
        default=[],
        help="Exact language to keep (can be repeated)",
    )
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=SortKey.NEWEST.value,
        help="Sort order (default: newest)",
    )
    parser.add_argument(
        "--redis-url",
        dest="redis_url",
        default=None,
        help="Override Redis URL (defaults to REDIS_URL env variable)",
    )
    parser.add_argument(
        "--namespace",
        default=None,
        help="Key namespace (defaults to SNIPPET_NAMESPACE or 'snippets')",
    )
    parser.add_argument(
        "--show-code",
        action="store_true",
        help="Print each snippet's code body",
    )

    return parser.parse_args(argv)


def build_store(args: argparse.Namespace) -> SnippetStore:
    config = StoreConfig(
        redis_url=args.redis_url or os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
        namespace=args.namespace or os.getenv("SNIPPET_NAMESPACE", "snippets"),
    )
    return SnippetStore(redis.Redis.from_url(config.redis_url), config)


def build_query(args: argparse.Namespace) -> SnippetQuery:
    return SnippetQuery(
        language=args.language,
        selected_languages=tuple(args.selected_languages),
        search=args.search,
        sort=args.sort,
    )


def format_snippets(snippets: Sequence[Snippet], *, show_code: bool = False) -> str:
    if not snippets:
        return "List of Snippets (0)\nNo snippets found."

    lines: list[str] = [f"List of Snippets ({len(snippets)})"]
    for index, snippet in enumerate(snippets, start=1):
        lines.extend(
            [
                "",
                f"{index}. {snippet.title}",
                f"   Language: {snippet.language}",
                f"   Tags: {', '.join(snippet.tags) if snippet.tags else '-'}",
                f"   Created: {snippet.created_at.date().isoformat()}",
            ]
        )
        if not show_code:
            continue
        lines.extend(["   Code:", "   ```"])
        code_lines = snippet.code.splitlines() or [""]
        for code_line in code_lines:
            lines.append(f"   {code_line}")
        lines.append("   ```")

    return "\n".join(lines)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    args = parse_args()
    store = build_store(args)

    try:
        snippets = store.list_snippets(args.user_id)
    except Exception:  # pragma: no cover - defensive guard for CLI usage
        logger.exception("Snippet store query failed")
        print("❌ Query failed. See log for details.", file=sys.stderr)
        sys.exit(1)

    print(format_snippets(apply_query(snippets, build_query(args)), show_code=args.show_code))


if __name__ == "__main__":
    main()
