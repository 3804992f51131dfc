import argparse
import logging
import os
import sys
import time

import redis
from tqdm import tqdm

from query import format_snippets
from src.exception_handler import error_handler
from src.snippet import SnippetQuery, SortKey
from src.store import SnippetFeed, SnippetStore, StoreConfig, watch_filtered


logger = logging.getLogger("snippet_manager")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Follow a user's snippets and reprint the filtered list on every change"
    )
    parser.add_argument(
        "user_id",
        help="Owner whose snippets are followed",
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
        help="Redis URL (defaults to REDIS_URL env variable)",
    )
    parser.add_argument(
        "--namespace",
        default=None,
        help="Key namespace (defaults to SNIPPET_NAMESPACE or 'snippets')",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=5.0,
        help="Seconds to wait before resubscribing after a connection error (default: 5)",
    )

    args = parser.parse_args()

    config = StoreConfig(
        redis_url=args.redis_url or os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
        namespace=args.namespace or os.getenv("SNIPPET_NAMESPACE", "snippets"),
    )
    feed = SnippetFeed(SnippetStore(redis.Redis.from_url(config.redis_url), config))
    query = SnippetQuery(
        language=args.language,
        selected_languages=tuple(args.selected_languages),
        search=args.search,
        sort=args.sort,
    )

    while True:
        try:
            for visible in watch_filtered(feed.events(args.user_id), query):
                # A delivered list means the subscription is healthy again
                error_handler.clear_errors()
                tqdm.write(format_snippets(visible))
                tqdm.write("")
        except KeyboardInterrupt:
            print("\n⚠️ Stopped watching", file=sys.stderr)
            sys.exit(0)
        except Exception as exc:
            error_handler.collect_sync_error(exc, args.user_id, "watch")
            if not error_handler.should_retry(exc):
                logger.exception("Fatal error while following snippets")
                print("\n❌ Fatal error occurred. See log for details.", file=sys.stderr)
                sys.exit(1)
            time.sleep(args.retry_delay)


if __name__ == "__main__":
    main()
