"""CLI interface for call-blacklist — for shell hooks and manual rule edits.

Usage:
    # Block calls (not messages) from a number
    python -m call_blacklist.cli add "+1 555 123 4567" --calls --no-messages

    # Ask whether an incoming call should be blocked
    python -m call_blacklist.cli check 5551234567 --mode calls

    # Validate / normalize user input before storing it
    python -m call_blacklist.cli validate "555*"
    python -m call_blacklist.cli normalize "1-800-FLOWERS"

Rules are persisted in SQLite so they survive across calls.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import create_blacklist, load_config, load_from_yaml
from .matcher import Blacklist
from .types import CheckMode, RuleStoreError

DEFAULT_DB = os.environ.get(
    "CALL_BLACKLIST_DB",
    str(Path.home() / ".call-blacklist" / "rules.db"),
)
DEFAULT_LOG_LEVEL = os.environ.get("CALL_BLACKLIST_LOG_LEVEL", "WARNING")


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True))


def _build_blacklist(args: argparse.Namespace) -> Blacklist:
    config = load_from_yaml(args.config) if args.config else load_config({})
    db_path = args.db
    if db_path is None and not config["store_configured"]:
        db_path = DEFAULT_DB
    return create_blacklist(config, db_path=db_path)


def _emit(data: object) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_normalize(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Print the normalized form of a number."""
    number, is_e164 = blacklist.normalizer.normalize(args.number)
    _emit({"number": number, "e164": is_e164})
    return 0


def cmd_validate(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Check user input before it is stored as a rule."""
    number, valid = blacklist.is_valid_input(args.number)
    _emit({"number": number, "valid": valid})
    return 0 if valid else 1


def cmd_add(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Add a rule or update its per-mode flags."""
    number, valid = blacklist.is_valid_input(args.number)
    if not valid or not number:
        sys.stderr.write(f"Invalid number: {args.number}\n")
        return 1

    requested = {CheckMode.CALLS: args.calls, CheckMode.MESSAGES: args.messages}
    if args.calls is None and args.messages is None:
        requested = dict.fromkeys(requested, True)

    flags = valid_mask = 0
    for mode, wanted in requested.items():
        if wanted is None:
            continue
        valid_mask |= mode
        if wanted:
            flags |= mode

    updated = blacklist.add_or_update(args.number, flags, valid_mask)
    _emit({"number": number, "updated": updated})
    return 0


def cmd_remove(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Remove a rule."""
    number = blacklist.normalizer.normalize(args.number).number
    _emit({"number": number, "removed": blacklist.rules.delete(number)})
    return 0


def cmd_list(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Dump all rules as JSON."""
    _emit([
        {
            "number": e.number,
            "regex": e.is_regex,
            "calls": e.block_calls,
            "messages": e.block_messages,
        }
        for e in blacklist.rules.entries()
    ])
    return 0


def cmd_check(args: argparse.Namespace, blacklist: Blacklist) -> int:
    """Classify an incoming number."""
    result = blacklist.is_listed(args.number, CheckMode[args.mode.upper()])
    _emit({"number": args.number, "result": result.name, "code": int(result)})
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="call_blacklist",
        description="Phone number blacklist for calls and messages",
    )
    parser.add_argument("--db", default=None, help="SQLite rule store path (overrides the config store)")
    parser.add_argument("--config", default="", help="YAML config file")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL, help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("normalize", help="Show the normalized number")
    p.add_argument("number")

    p = sub.add_parser("validate", help="Validate a number or pattern")
    p.add_argument("number")

    p = sub.add_parser("add", help="Add or update a rule")
    p.add_argument("number")
    p.add_argument("--calls", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--messages", action=argparse.BooleanOptionalAction, default=None)

    p = sub.add_parser("remove", help="Remove a rule")
    p.add_argument("number")

    sub.add_parser("list", help="List rules")

    p = sub.add_parser("check", help="Check an incoming number")
    p.add_argument("number", nargs="?", default="", help="Empty for a private number")
    p.add_argument("--mode", choices=["calls", "messages"], default="calls")

    args = parser.parse_args(argv)
    _setup_logging(args.log_level)

    cmds = {
        "normalize": cmd_normalize,
        "validate": cmd_validate,
        "add": cmd_add,
        "remove": cmd_remove,
        "list": cmd_list,
        "check": cmd_check,
    }
    try:
        blacklist = _build_blacklist(args)
    except RuleStoreError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    try:
        return cmds[args.command](args, blacklist)
    except RuleStoreError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    finally:
        close = getattr(blacklist.rules, "close", None)
        if close is not None:
            close()


if __name__ == "__main__":
    sys.exit(main())
