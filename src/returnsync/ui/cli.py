from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from returnsync import __version__
from returnsync.app import (
    build_runtime,
    clear_pending_retries,
    list_pending_retries,
    seed_stock_from_csv,
    set_manual_mapping,
)
from returnsync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from returnsync.domain.reconciliation import CycleResult

log = logging.getLogger(__name__)


def _positive_float(value: str) -> float:
    parsed = float(value)
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return parsed


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile returns and stock across storefronts")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run one reconciliation cycle now")
    run.add_argument(
        "--reset-hours",
        type=_positive_float,
        help="Rewind the sync watermark this many hours before running",
    )

    serve = subparsers.add_parser("serve", help="Run cycles on a timer until interrupted")
    serve.add_argument(
        "--interval",
        type=_positive_int,
        help="Minutes between cycles (defaults to the stored interval)",
    )

    subparsers.add_parser("status", help="Show scheduler and last cycle status")

    seed = subparsers.add_parser("seed", help="Load stock records from a CSV file")
    seed.add_argument("csv", type=Path, help="CSV with name,color,quantity[,size] columns")

    retry = subparsers.add_parser("retry", help="Inspect the pending retry ledger")
    retry_sub = retry.add_subparsers(dest="retry_command", required=True)
    retry_sub.add_parser("list", help="List order lines queued for retry")
    retry_sub.add_parser("clear", help="Drop every queued order line")

    mapping = subparsers.add_parser("mapping", help="Secondary listing mapping commands")
    mapping_sub = mapping.add_subparsers(dest="mapping_command", required=True)
    mapping_set = mapping_sub.add_parser("set", help="Pin a source product to a secondary listing")
    mapping_set.add_argument("source_product_id", help="Primary storefront channel product id")
    mapping_set.add_argument("secondary_listing_id", help="Secondary storefront channel product id")
    mapping_set.add_argument(
        "--option",
        default="",
        help="Option name on the primary listing (empty for single-option products)",
    )
    mapping_set.add_argument("--name", help="Secondary listing name, for reference")

    return parser.parse_args(list(argv))


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))  # noqa: T201


def _log_result(result: CycleResult) -> None:
    if result.was_skipped:
        log.warning("Cycle skipped: %s", result.skip_reason)
        return
    log.info(
        "Cycle %s: detected=%s processed=%s skipped=%s errors=%s sales=%s",
        result.run_id,
        result.detected,
        result.processed,
        result.skipped,
        result.errors,
        result.sales_inserted,
    )


async def _run_once(reset_hours: float | None) -> CycleResult:
    runtime = build_runtime()
    try:
        return await runtime.scheduler.run_cycle_now(reset_hours)
    finally:
        await runtime.aclose()


async def _serve(interval: int | None) -> None:
    runtime = build_runtime()
    scheduler = runtime.scheduler
    try:
        if interval is not None:
            scheduler.start(interval)
        elif not scheduler.resume_if_enabled():
            scheduler.start()
        await runtime.engine.run_cycle()
        await asyncio.Event().wait()
    finally:
        if scheduler.active:
            scheduler.stop()
        await runtime.aclose()


async def _status() -> dict[str, object]:
    runtime = build_runtime()
    try:
        return runtime.scheduler.get_status().as_dict()
    finally:
        await runtime.aclose()


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "run":
            result = asyncio.run(_run_once(parsed_args.reset_hours))
            _log_result(result)
            _print_json(result.as_dict())
            if result.errors:
                sys.exit(1)
        elif parsed_args.command == "serve":
            asyncio.run(_serve(parsed_args.interval))
        elif parsed_args.command == "status":
            _print_json(asyncio.run(_status()))
        elif parsed_args.command == "seed":
            seeded = seed_stock_from_csv(parsed_args.csv)
            _print_json({"added": seeded.added, "skipped": seeded.skipped})
        elif parsed_args.command == "retry" and parsed_args.retry_command == "list":
            _print_json(list_pending_retries())
        elif parsed_args.command == "retry" and parsed_args.retry_command == "clear":
            _print_json({"cleared": clear_pending_retries()})
        elif parsed_args.command == "mapping" and parsed_args.mapping_command == "set":
            mapping = set_manual_mapping(
                parsed_args.source_product_id,
                parsed_args.secondary_listing_id,
                source_option=parsed_args.option,
                secondary_listing_name=parsed_args.name,
            )
            _print_json(
                {
                    "source_product_id": mapping.source_product_id,
                    "source_option": mapping.source_option,
                    "secondary_listing_id": mapping.secondary_listing_id,
                    "status": mapping.status.value,
                }
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ValueError:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
