"""Command-line interface for friendlymail.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

import structlog

from friendlymail import __version__
from friendlymail.config import Settings, get_settings
from friendlymail.daemon import Daemon, InMemorySocialState
from friendlymail.engine import Processor
from friendlymail.exceptions import ConfigurationError, DaemonBusyError, MessageParseError
from friendlymail.models import Draft, Message
from friendlymail.transport import LoopbackTransport, message_from_text
from friendlymail.utils import retry_on_failure

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="friendlymail", description="friendlymail daemon")
    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser(
        "process",
        help="Replay message files once and print the drafts produced",
    )
    process_parser.add_argument(
        "--host-email",
        default=None,
        help="Host email address (default: settings host_address)",
    )
    process_parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Message files in log order (default: read one message from stdin)",
    )

    run_parser = subparsers.add_parser(
        "run",
        help="Run daemon cycles over a loopback transport and print sent messages",
    )
    run_parser.add_argument(
        "--host-email",
        default=None,
        help="Host email address (default: settings host_address)",
    )
    run_parser.add_argument("--cycles", type=int, default=1, help="Number of daemon cycles")
    run_parser.add_argument("files", nargs="*", type=Path, help="Message files loaded before the first cycle")

    return parser


def _read_messages(paths: Iterable[Path], host_address: str) -> list[Message]:
    paths = list(paths)
    if not paths:
        return [message_from_text(sys.stdin.read(), host_address=host_address)]

    messages = []
    for path in paths:
        messages.append(message_from_text(path.read_text(encoding="utf-8"), host_address=host_address))
    return messages


def _print_message(index: int, label: str, item: Draft | Message) -> None:
    print(f"--- {label} {index} ---")
    print(f"From: {item.sender or '(none)'}")
    print(f"To: {', '.join(item.recipients)}")
    print(f"Subject: {item.subject}")
    print(item.body)
    print("")


def _cmd_process(args: argparse.Namespace, host_address: str, settings: Settings) -> int:
    messages = _read_messages(args.files, host_address)
    processor = Processor(host_address, messages, settings=settings)

    drafts = processor.get_message_drafts()
    if not drafts:
        print("No draft messages created.")
        return 0

    print(f"Created {len(drafts)} draft message(s):\n")
    for index, draft in enumerate(drafts, start=1):
        _print_message(index, "Draft", draft)
    return 0


async def _cmd_run(args: argparse.Namespace, host_address: str, settings: Settings) -> int:
    transport = LoopbackTransport(host_address)
    for message in _read_messages(args.files, host_address) if args.files else []:
        transport.load(message)

    social_state = InMemorySocialState()
    daemon = Daemon(host_address, transport, transport, social_state, settings=settings)

    @retry_on_failure(
        max_retries=settings.max_retries,
        delay=settings.retry_delay,
        exceptions=(OSError,),
    )
    async def run_cycle() -> None:
        await daemon.run()

    for cycle in range(args.cycles):
        try:
            await run_cycle()
        except DaemonBusyError:
            logger.error("daemon_cycle_overlap", cycle=cycle + 1)
            return 1

    sent = transport.sent_messages
    print(f"{len(sent)} sent message(s):\n")
    for index, message in enumerate(sent, start=1):
        _print_message(index, "Sent", message)

    account = social_state.get()
    if account is not None:
        followers = sorted(daemon.snapshot.followers_of(host_address))
        print(f"Account: {account.display_name} <{account.address}>")
        print(f"Followers: {', '.join(followers) if followers else '(none)'}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the friendlymail CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
    )

    logger.info("friendlymail_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    host_address = parsed.host_email or settings.host_address
    if not host_address:
        logger.error("host_address_missing")
        print("error: --host-email or FRIENDLYMAIL_HOST_ADDRESS is required", file=sys.stderr)
        return 2

    try:
        if parsed.command == "process":
            return _cmd_process(parsed, host_address, settings)
        if parsed.command == "run":
            return asyncio.run(_cmd_run(parsed, host_address, settings))
    except MessageParseError as exc:
        logger.error("message_parse_failed", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
