"""
MangaHub - Main Entry Point

Runs one catalog operation from the command line and prints the result as JSON.

Examples:
    python main.py sources
    python main.py run mangareader search -p query="one piece" -p page=2
    python main.py run omegascans info -p id=some-series --no-cache
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import structlog

from mangahub.config import get_settings
from mangahub.core.container import DependencyContainer
from mangahub.core.exceptions import MangaHubError, ParameterValidationError
from mangahub.models.schemas import BaseRecord
from mangahub.services.catalog import OPERATIONS


def configure_logging(level: str) -> None:
    """Configure structured logging on top of the stdlib root logger."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger(__name__)


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``["query=one piece", "page=2"]`` into a dict."""
    params = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ParameterValidationError(f"Expected name=value, got {pair!r}", parameter=pair)
        params[name.strip()] = value
    return params


def to_json(data: Any) -> Any:
    if isinstance(data, BaseRecord):
        return data.to_cache()
    if isinstance(data, list):
        return [to_json(item) for item in data]
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mangahub", description="MangaHub scraping core")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sources", help="List registered sources and their features")

    run = commands.add_parser("run", help="Run one catalog operation")
    run.add_argument("source", help="Source id, e.g. mangareader")
    run.add_argument("operation", choices=sorted(OPERATIONS), help="Operation name")
    run.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Operation parameter (repeatable)",
    )
    run.add_argument("--no-cache", action="store_true", help="Bypass the cache read")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    container = DependencyContainer(settings)
    await container.initialize()

    try:
        if args.command == "sources":
            payload = [info.to_cache() for info in container.catalog.list_sources()]
        else:
            result = await container.catalog.execute(
                args.source,
                args.operation,
                parse_params(args.param),
                bypass_cache=args.no_cache,
            )
            payload = {
                "success": True,
                "source": result.source,
                "data": to_json(result.data),
                "cached": result.cached,
            }
            if result.pagination is not None:
                payload["pagination"] = result.pagination.to_cache()

        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    except MangaHubError as e:
        logger.error("operation_failed", kind=e.kind, error=str(e))
        print(json.dumps({"success": False, **e.to_dict()}, ensure_ascii=False, indent=2))
        return 1

    finally:
        await container.shutdown()


def main() -> None:
    args = build_parser().parse_args()
    configure_logging(get_settings().log_level)
    logger.info("mangahub_starting", command=args.command, environment=get_settings().app_env)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
