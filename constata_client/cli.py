"""
Command line front end.

Usage:
    python -m constata_client verify-callback body.json
    python -m constata_client attestations --page 0
    python -m constata_client create-attestation music.mp3 lyrics.txt --email foo@example.com

Account settings come from CONSTATA_* environment variables (see
constata_client.config). The password is prompted for when
CONSTATA_PASSWORD is not set.
"""
import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from constata_client.client import ApiClient
from constata_client.config import Settings, get_settings
from constata_client.errors import CallbackError, ConstataError
from constata_client.signing.callbacks import verify_callback

logger = logging.getLogger(__name__)


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, default=str))


def _build_client(settings: Settings) -> ApiClient:
    if not settings.encrypted_key:
        raise SystemExit("CONSTATA_ENCRYPTED_KEY is not set")
    password = settings.password or getpass.getpass("Key password: ")
    return ApiClient(
        settings.encrypted_key,
        password,
        settings.environment,
        timeout=settings.timeout,
    )


def cmd_verify_callback(args, settings: Settings) -> int:
    raw_body = Path(args.file).read_bytes() if args.file else sys.stdin.buffer.read()
    try:
        payload = verify_callback(raw_body, settings.environment_config)
    except CallbackError as e:
        print(f"Rejected: {e}", file=sys.stderr)
        return 1
    _print_json({"kind": payload.kind, "resource": payload.resource})
    return 0


async def _run_api_command(args, settings: Settings) -> int:
    async with _build_client(settings) as client:
        if args.command == "attestations":
            for attestation in await client.all_attestations(args.page):
                _print_json(attestation.model_dump(mode="json"))
        elif args.command == "attestation":
            attestation = await client.attestation(args.id)
            if attestation is None:
                print(f"Attestation {args.id} not found", file=sys.stderr)
                return 1
            _print_json(attestation.model_dump(mode="json"))
        elif args.command == "create-attestation":
            files = [Path(f).read_bytes() for f in args.files]
            attestation = await client.create_attestation(files, args.email, args.markers)
            _print_json(attestation.model_dump(mode="json") if attestation else None)
        elif args.command == "set-callbacks-url":
            print(await client.update_web_callbacks_url(args.url))
        elif args.command == "web-callbacks":
            for callback in await client.all_web_callbacks(args.page):
                try:
                    payload = callback.parse(client.environment)
                    verified = {"kind": payload.kind, "resource": payload.resource}
                except CallbackError as e:
                    verified = {"error": str(e)}
                _print_json({
                    "id": callback.id,
                    "state": callback.state,
                    "created_at": callback.created_at,
                    "verified": verified,
                })
        elif args.command == "web-callback-attempts":
            for attempt in await client.all_web_callback_attempts(args.id):
                _print_json(attempt.model_dump(mode="json"))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="constata_client",
        description="Constata API client",
    )
    parser.add_argument("--environment", help="Override CONSTATA_ENVIRONMENT")
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify = subparsers.add_parser("verify-callback", help="Verify a web callback body")
    verify.add_argument("file", nargs="?", help="File holding the raw body (default: stdin)")

    attestations = subparsers.add_parser("attestations", help="List attestations")
    attestations.add_argument("--page", type=int, default=0)

    attestation = subparsers.add_parser("attestation", help="Show one attestation")
    attestation.add_argument("id", type=int)

    create = subparsers.add_parser("create-attestation", help="Attest one or more files")
    create.add_argument("files", nargs="+")
    create.add_argument("--email", action="append", default=[], help="Send the admin access URL here")
    create.add_argument("--markers", help="Free text markers")

    callbacks_url = subparsers.add_parser("set-callbacks-url", help="Set the web callbacks URL")
    callbacks_url.add_argument("url")

    web_callbacks = subparsers.add_parser("web-callbacks", help="List and verify web callbacks")
    web_callbacks.add_argument("--page", type=int, default=0)

    attempts = subparsers.add_parser("web-callback-attempts", help="List delivery attempts of a web callback")
    attempts.add_argument("id", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.environment:
        settings = settings.model_copy(update={"environment": args.environment})

    logging.basicConfig(level=settings.log_level.upper(), format=settings.log_format)

    try:
        if args.command == "verify-callback":
            return cmd_verify_callback(args, settings)
        return asyncio.run(_run_api_command(args, settings))
    except ConstataError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 2
