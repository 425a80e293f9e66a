# app/cli/analyze.py
"""
CLI for running analytics without the API server.

Usage:
    python -m app.cli.analyze post https://www.reddit.com/r/python/comments/abc123/title/
    python -m app.cli.analyze user spez
    python -m app.cli.analyze subreddit python --json
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()


async def _run(kind: str, reference: str):
    from app.config import get_settings
    from app.database import init_db
    from app.services.reddit_analytics import build_analytics_service

    init_db()
    service = build_analytics_service(get_settings())
    try:
        if kind == "post":
            return await service.analyze_post(reference)
        if kind == "user":
            return await service.analyze_user(reference)
        return await service.analyze_subreddit(reference)
    finally:
        await service.aggregator.fetcher.close()


def _print_summary(result) -> None:
    data = result.data
    name = getattr(data, "post_id", None) or getattr(data, "username", None) or data.name

    print(f"\n=== {name} ===\n")
    print(f"{result.message}")
    print(f"\nSentiment: {data.sentiment.category} ({data.sentiment.compound:+.3f})")
    print(f"  Confidence: {data.sentiment.confidence:.2f}")
    for source, compound in data.sentiment.components.items():
        print(f"  {source}: {compound:+.3f}")

    print("\nEngagement:")
    print(f"  Score: {data.engagement.score}")
    print(f"  Controversy: {data.engagement.controversy_score}")
    print(f"  Virality: {data.engagement.virality_score}")
    print(f"  Velocity: {data.engagement.velocity} upvotes/hour")

    if result.warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"  - {warning}")
    print()


def cmd_analyze(args):
    """Analyze one post, user or subreddit and print the result."""
    from app.logging_config import configure_logging
    from app.services.reddit_sources.errors import AnalyticsError

    configure_logging(json_format=False, level="DEBUG" if args.verbose else "WARNING")

    try:
        result = asyncio.run(_run(args.kind, args.reference))
    except AnalyticsError as e:
        print(f"Error [{e.code}]: {e.message}")
        sys.exit(1)

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        _print_summary(result)


def main():
    parser = argparse.ArgumentParser(
        description="Reddit Analytics CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a post by URL
  python -m app.cli.analyze post https://redd.it/abc123

  # Full JSON for a subreddit
  python -m app.cli.analyze subreddit python --json
        """,
    )
    parser.add_argument("kind", choices=["post", "user", "subreddit"], help="What to analyze")
    parser.add_argument("reference", help="Post URL, username or subreddit name")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show pipeline logs")
    parser.set_defaults(func=cmd_analyze)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
