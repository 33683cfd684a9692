"""Command-line front end for powgate.

Usage:
    powgate submit "hello world" --difficulty 2
    powgate list hello
    powgate get <work-hash-hex>
    powgate verify '{"val": "...", "nonce": "...", "work_hash": "..."}' --difficulty 2
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from powgate.core.errors import PowGateError
from powgate.core.pow import parse_difficulty
from powgate.core.settings import settings
from powgate.schemas.submission import WireSchema
from powgate.services.codec import decode_submission, verify_submission
from powgate.services.gateway import GatewayClient, load_gateway_config
from powgate.services.miner import Miner
from powgate.utils.hash import get_available_hash_algorithms, get_hash_function

logger = logging.getLogger("powgate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="powgate", description="Proof-of-work gateway client")
    p.add_argument("--gateway", default=settings.gateway_url,
                   help="Gateway base URL (default: %(default)s)")
    p.add_argument("--hash", dest="hash_algorithm", default=settings.hash_algorithm,
                   choices=get_available_hash_algorithms(),
                   help="Hash algorithm (default: %(default)s)")
    p.add_argument("--schema", default=settings.wire_schema,
                   choices=[s.value for s in WireSchema],
                   help="Wire schema for submissions (default: %(default)s)")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = p.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Mine and submit a value")
    submit.add_argument("val", help="Value to submit")
    submit.add_argument("--difficulty", default=str(settings.difficulty),
                        help="Leading zero bytes required (default: %(default)s)")
    submit.add_argument("--tag", default=None, help="Tag bound into the load hash")
    submit.add_argument("--no-time", action="store_true",
                        help="Do not bind a timestamp into the load hash "
                             "(not allowed with --schema garry, whose gateway requires one)")
    submit.add_argument("--workers", type=int, default=settings.workers,
                        help="Parallel mining workers (default: %(default)s)")
    submit.add_argument("--timeout", type=float, default=settings.mining_timeout_seconds,
                        help="Give up mining after this many seconds")

    listing = sub.add_parser("list", help="List values by prefix, newest first")
    listing.add_argument("prefix", nargs="?", default="")

    get = sub.add_parser("get", help="Fetch content by work hash")
    get.add_argument("work_hash")

    verify = sub.add_parser("verify", help="Check a submission body offline")
    verify.add_argument("body", help="JSON submission body")
    verify.add_argument("--difficulty", default=str(settings.difficulty))

    args = p.parse_args(argv)
    garry = WireSchema(args.schema) is WireSchema.GARRY
    if args.command == "submit" and args.no_time and garry:
        p.error("--no-time cannot be used with --schema garry: the gateway binds the timestamp")
    return args


async def _run(args: argparse.Namespace) -> int:
    config = replace(
        load_gateway_config(),
        base_url=args.gateway.rstrip("/"),
        wire_schema=WireSchema(args.schema),
    )
    if args.command == "submit":
        config = replace(config, workers=args.workers, mining_timeout_seconds=args.timeout)

    miner = Miner(hash_algorithm=args.hash_algorithm)
    async with GatewayClient(config, miner=miner) as client:
        if args.command == "submit":
            difficulty = parse_difficulty(args.difficulty)
            result = await client.publish(
                args.val,
                difficulty=difficulty,
                tag=args.tag,
                timed=not args.no_time,
                progress=lambda trials: logger.info("%d trials", trials),
            )
            print(result.work_hash_hex)
            print(f"{config.base_url}{result.content_path}")
        elif args.command == "list":
            for entry in await client.list_entries(args.prefix):
                print(entry.val)
        elif args.command == "get":
            blob = await client.fetch_content(args.work_hash)
            sys.stdout.write(blob.val.decode("utf-8", errors="replace") + "\n")
    return 0


def _verify(args: argparse.Namespace) -> int:
    try:
        body = json.loads(args.body)
    except ValueError as exc:
        print(f"error: body is not JSON: {exc}", file=sys.stderr)
        return 2
    record = decode_submission(body)
    ok = verify_submission(
        record, parse_difficulty(args.difficulty), get_hash_function(args.hash_algorithm)
    )
    print("valid" if ok else "invalid")
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "verify":
            return _verify(args)
        return asyncio.run(_run(args))
    except PowGateError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
