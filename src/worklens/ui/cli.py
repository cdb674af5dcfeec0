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

from worklens.app import (
    explain_ownership,
    fetch_owned_once,
    open_seeded_store,
    start_aggregation,
)
from worklens.config import ConfigurationError, configure_logging, require_env_vars
from worklens.domain.model import ActorIdentity, EntityKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from worklens.domain.aggregation import AggregateResultSet
    from worklens.domain.model import DomainEntity

log = logging.getLogger(__name__)

SEED_FILE_ENV = "WORKLENS_SEED_FILE"


def _add_actor_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kind",
        type=EntityKind,
        choices=list(EntityKind),
        default=EntityKind.TASK,
        help="Entity kind to resolve (default: %(default)s)",
    )
    parser.add_argument("--id", dest="actor_id", type=str, help="Actor id")
    parser.add_argument("--email", type=str, help="Actor email address")
    parser.add_argument("--name", type=str, help="Actor display name")


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--seed",
        type=Path,
        help=f"JSON seed file to load (defaults to ${SEED_FILE_ENV})",
    )
    parser.add_argument(
        "--backend",
        choices=("memory", "sqlalchemy"),
        default="memory",
        help="Document store backend (default: %(default)s)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve and aggregate work records")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Run a live aggregation over a seeded store")
    _add_actor_arguments(watch)
    _add_store_arguments(watch)
    watch.add_argument(
        "--max-results",
        type=int,
        help="Stop after this many result sets (runs until interrupted otherwise)",
    )

    lookup = subparsers.add_parser("lookup", help="Read the actor's records once")
    _add_actor_arguments(lookup)
    _add_store_arguments(lookup)

    resolve = subparsers.add_parser("resolve", help="Check whether a raw record is owned")
    _add_actor_arguments(resolve)
    resolve.add_argument(
        "--record",
        type=str,
        required=True,
        help="Raw record as a JSON object",
    )

    return parser.parse_args(list(argv))


def _actor_from_args(args: argparse.Namespace) -> ActorIdentity:
    return ActorIdentity(id=args.actor_id, email=args.email, display_name=args.name)


def _seed_path(args: argparse.Namespace) -> Path:
    if args.seed is not None:
        return args.seed
    return Path(require_env_vars((SEED_FILE_ENV,))[SEED_FILE_ENV])


def _parse_record(value: str) -> dict[str, object]:
    try:
        record = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid record JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise ValueError("Record must be a JSON object")
    return record


def _describe(entity: DomainEntity) -> str:
    label = getattr(entity, "title", None) or getattr(entity, "name", "")
    status = getattr(entity, "status", None)
    suffix = f" [{status}]" if status is not None else ""
    return f"{entity.store_id or '-'}: {label}{suffix}"


def _log_result(result: AggregateResultSet) -> None:
    log.info(
        "Revision %d: %d record(s), sources reported=%d degraded=%d",
        result.revision,
        len(result),
        len(result.reported_sources),
        len(result.degraded_sources),
    )
    for entity in result.entities:
        log.info("  %s", _describe(entity))


async def _watch(args: argparse.Namespace, actor: ActorIdentity) -> None:
    store = open_seeded_store(_seed_path(args), backend=args.backend)
    try:
        async with start_aggregation(store, actor, args.kind) as handle:
            emitted = 0
            async for result in handle:
                _log_result(result)
                emitted += 1
                if args.max_results is not None and emitted >= args.max_results:
                    break
    finally:
        await store.close()


async def _lookup(args: argparse.Namespace, actor: ActorIdentity) -> None:
    store = open_seeded_store(_seed_path(args), backend=args.backend)
    try:
        entities = await fetch_owned_once(store, actor, args.kind)
    finally:
        await store.close()
    log.info("Found %d record(s)", len(entities))
    for entity in entities:
        log.info("  %s", _describe(entity))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        actor = _actor_from_args(parsed_args)
        record = _parse_record(parsed_args.record) if parsed_args.command == "resolve" else None
        if parsed_args.command in ("watch", "lookup"):
            _seed_path(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "watch":
            asyncio.run(_watch(parsed_args, actor))
        elif parsed_args.command == "lookup":
            asyncio.run(_lookup(parsed_args, actor))
        elif parsed_args.command == "resolve" and record is not None:
            match = explain_ownership(actor, record, kind=parsed_args.kind)
            log.info(
                "owned=%s via=%s role=%s field=%s",
                match.owned,
                match.via,
                match.role,
                match.field,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
