"""Command-line entry point: ``hostreaper`` / ``python -m hostreaper``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from injector import Injector
from loguru import logger

from .cloud import RegionResolver
from .config import ReaperConfig, load_config
from .errors import ConfigurationError
from .module import ReaperModule
from .observability import setup_logging, teardown_logging
from .orchestrator import OrchestratorClient
from .reaper import Reaper

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostreaper",
        description="Retire orchestrator hosts whose EC2 instances are gone",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to hostreaper.toml")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between passes (<= 0 runs once)")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument("--page-size", type=int, default=None, help="Hosts per inventory page")
    parser.add_argument("--instance-id-label", type=str, default=None)
    parser.add_argument("--az-label", type=str, default=None)
    parser.add_argument("--region", type=str, default=None, help="Home region for region discovery")
    parser.add_argument("--concurrency", type=int, default=None, help="Hosts reconciled in parallel")
    parser.add_argument("--log-level", type=str, default=None)
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "interval_secs": 0 if args.once else args.interval,
        "hosts_per_page": args.page_size,
        "instance_id_label": args.instance_id_label,
        "availability_zone_label": args.az_label,
        "home_region": args.region,
        "concurrency": args.concurrency,
        "log_level": args.log_level,
    }


async def run(config: ReaperConfig) -> None:
    injector = Injector([ReaperModule(config)])
    regions = injector.get(RegionResolver)
    orchestrator = injector.get(OrchestratorClient)
    try:
        await regions.bootstrap()
        logger.info(
            "Reaper started: url={url} interval={i}s labels=({id_label}, {az_label})",
            url=config.url, i=config.interval_secs,
            id_label=config.instance_id_label, az_label=config.availability_zone_label,
        )
        await injector.get(Reaper).run()
    finally:
        await regions.close()
        await orchestrator.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config, overrides=_overrides(args))
    except ConfigurationError as e:
        print(f"hostreaper: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    handler_ids = setup_logging(config.log)
    try:
        asyncio.run(run(config))
    except ConfigurationError as e:
        logger.error("Configuration error: {err}", err=e)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        teardown_logging(handler_ids)
    return 0


if __name__ == "__main__":
    sys.exit(main())
