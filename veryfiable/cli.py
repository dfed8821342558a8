"""veryfiable.cli

Command line interface entry point.

Design constraints:
- argparse-based.
- Lazy imports: do not import eth/http/db dependencies at parse time.
- Exit codes: 0 success, 1 operation failed, 2 usage error.
"""

from __future__ import annotations

import argparse
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

RULE = "=" * 59


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="veryfiable",
        description="Verified public reviews on the Ethereum Attestation Service.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser(
        "register-schema",
        help="Register the Public Review schema on EAS (settings from environment/config)",
    )

    p_api = sub.add_parser("api", help="Start the HTTP service")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    sub.add_parser("init-db", help="Apply database/schema.sql")

    return parser


def _print_version() -> None:
    from veryfiable import __version__

    print(f"veryfiable v{__version__}")


def _load(ctx: CliContext):
    from veryfiable.core.config import load_config
    from veryfiable.core.logging import configure_logging

    config = load_config(ctx.repo_root)
    configure_logging(config.logging)
    return config


def _debug_from_env() -> bool:
    """Debug flag when config/*.yaml itself failed to load."""

    from pydantic import ValidationError

    from veryfiable.core.config import Config

    try:
        return Config().debug
    except ValidationError:
        return False


def _cmd_register_schema(ctx: CliContext, args: argparse.Namespace) -> int:
    print("")
    print(RULE)
    print("  EAS Schema Registration")
    print(RULE)
    print("")

    config = None
    try:
        config = _load(ctx)

        from veryfiable.integrations.registration import register_public_review_schema

        uid = register_public_review_schema(config.eas)
    except Exception as e:
        print("", file=sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        debug = config.debug if config is not None else _debug_from_env()
        if debug:
            print("", file=sys.stderr)
            traceback.print_exc()
        return 1

    print("")
    print(RULE)
    print(f"Schema UID: {uid}")
    print(RULE)
    print("")
    print("Next steps:")
    print("  1. Copy the Schema UID above")
    print("  2. Set it as VERYFIABLE_EAS__SCHEMA_UID (or eas.schema_uid in config/user.yaml)")
    print("  3. Replace the '0x...' seed row in database/schema.sql")
    print("  4. Use this UID when creating attestations")
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load(ctx)

    host = args.host or config.api.host
    port = args.port or config.api.port

    import uvicorn

    # uvicorn handles SIGTERM/SIGINT: stop accepting, drain in-flight requests,
    # then run the lifespan shutdown which closes the database pool.
    uvicorn.run("api.main:app", host=host, port=port, reload=False, log_config=None)
    return 0


def _cmd_init_db(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio

    from veryfiable.core.database import Database

    config = _load(ctx)
    db = Database(config.database)

    async def _apply() -> None:
        try:
            await db.pool.open(wait=True, timeout=config.database.timeout_s)
            await db.apply_schema()
        finally:
            await db.close()

    try:
        asyncio.run(_apply())
    except Exception as e:
        print(f"init-db failed: {e}", file=sys.stderr)
        return 1
    print("database schema applied")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "register-schema": _cmd_register_schema,
        "api": _cmd_api,
        "init-db": _cmd_init_db,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())
