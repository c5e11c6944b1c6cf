"""CLI entry point for the open-source hunter."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError
from redis.exceptions import RedisError

from hunter.core.config import Settings
from hunter.core.schemas import SearchFilters, SearchResponse
from hunter.core.store import RedisConnection
from hunter.enrichment.tavily import build_provider
from hunter.pipeline.orchestrator import SearchPipeline
from hunter.pipeline.worker import Worker
from hunter.platforms.github.adapter import GitHubSource
from hunter.queue.protocol import JobQueue, SearchFailedError, SearchTimeoutError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TIMEOUT = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Open-source hunter - queue-backed search for standout open-source projects",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in defaults + environment)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- worker ---
    subparsers.add_parser("worker", help="Consume search jobs from the request queue")

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Submit a search and wait for the result")
    search_parser.add_argument("topic", help="Main keywords or problem statement")
    search_parser.add_argument("--language", help="Preferred primary language (e.g. Rust)")
    search_parser.add_argument("--min-stars", type=int, help="Minimum number of stars")
    search_parser.add_argument(
        "--only-maintained",
        action="store_true",
        help="Only projects with recent pushes",
    )
    search_parser.add_argument("--limit", type=int, help="Maximum number of projects (1-15)")
    search_parser.add_argument("--timeout-ms", type=int, help="How long to wait for a worker")
    search_parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")

    # --- status ---
    status_parser = subparsers.add_parser("status", help="Show a job's status record")
    status_parser.add_argument("job_id")

    # --- health ---
    subparsers.add_parser("health", help="Check the queue store")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_environment() -> None:
    """Load .env, then .env.local without overriding what is already set."""
    load_dotenv()
    local = Path.cwd() / ".env.local"
    if local.exists():
        load_dotenv(local, override=False)


async def run_worker(settings: Settings) -> int:
    """Run the worker loop until SIGINT/SIGTERM."""
    async with (
        RedisConnection(settings.queue.redis_url) as conn,
        httpx.AsyncClient() as http,
    ):
        queue = JobQueue(conn, settings.queue, settings.submit)
        source = GitHubSource(http, settings.github, settings.github.token())
        provider = build_provider(http, settings.enrichment)
        worker = Worker(queue, SearchPipeline(source, provider), settings.worker)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, worker.stop)
            except NotImplementedError:
                pass  # Windows

        await worker.run()
    return EXIT_OK


def print_response(response: SearchResponse) -> None:
    print(f"\n{response.summary}")
    print(f"(job {response.job_id}: {len(response.projects)} of {response.total_fetched} fetched)\n")
    for i, project in enumerate(response.projects, start=1):
        print(f"{i}. {project.name}  [score {project.score:.2f}]")
        print(f"   {project.url}")
        if project.description:
            print(f"   {project.description}")
        if project.reasons:
            print(f"   {'; '.join(project.reasons)}")


async def run_search(settings: Settings, args: argparse.Namespace) -> int:
    try:
        filters = SearchFilters.from_request(
            args.topic,
            language=args.language,
            min_stars=args.min_stars,
            only_maintained=args.only_maintained,
            limit=args.limit,
            default_limit=settings.submit.default_limit,
        )
    except ValidationError as e:
        print(f"Invalid search: {e}", file=sys.stderr)
        return EXIT_ERROR

    async with RedisConnection(settings.queue.redis_url) as conn:
        queue = JobQueue(conn, settings.queue, settings.submit)
        try:
            response = await queue.submit_search(filters, args.timeout_ms)
        except SearchTimeoutError as e:
            print(f"Timeout: {e} (job {e.job_id})", file=sys.stderr)
            return EXIT_TIMEOUT
        except SearchFailedError as e:
            print(f"Search failed: {e}", file=sys.stderr)
            return EXIT_ERROR

    if args.json:
        print(response.to_json())
    else:
        print_response(response)
    return EXIT_OK


async def run_status(settings: Settings, job_id: str) -> int:
    async with RedisConnection(settings.queue.redis_url) as conn:
        status = await JobQueue(conn, settings.queue).get_status(job_id)
    if status is None:
        print(f"No status for job {job_id} (unknown or expired)")
        return EXIT_ERROR
    print(status.to_json())
    return EXIT_OK


async def run_health(settings: Settings) -> int:
    async with RedisConnection(settings.queue.redis_url) as conn:
        report = await JobQueue(conn, settings.queue).health()
    print(json.dumps(report, indent=2))
    return EXIT_OK if report["status"] == "ok" else EXIT_ERROR


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)
    load_environment()

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    try:
        if args.command == "worker":
            code = asyncio.run(run_worker(settings))
        elif args.command == "search":
            code = asyncio.run(run_search(settings, args))
        elif args.command == "status":
            code = asyncio.run(run_status(settings, args.job_id))
        else:
            code = asyncio.run(run_health(settings))
    except RedisError as e:
        print(f"Queue store unavailable at {settings.queue.redis_url}: {e}", file=sys.stderr)
        code = EXIT_ERROR
    sys.exit(code)


if __name__ == "__main__":
    main()
