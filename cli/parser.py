"""Argument parser for the Promptly CLI.

Updates:
  v0.2.0 - 2026-10-08 - Add library search, tag, and sort flags.
  v0.1.0 - 2026-09-27 - Introduce home, add, library, and session commands.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from core.pipeline import SortOrder


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser."""
    parser = argparse.ArgumentParser(
        prog="promptly",
        description="Promptly prompt diary",
    )
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "home",
        help="Show the most recent prompts (default command).",
    )

    add_parser = subparsers.add_parser(
        "add",
        help="Summarise and save a new prompt.",
    )
    prompt_group = add_parser.add_mutually_exclusive_group()
    prompt_group.add_argument("--prompt", type=str, default=None, help="Prompt text.")
    prompt_group.add_argument(
        "--prompt-file",
        type=Path,
        default=None,
        help="Read the prompt text from a file.",
    )
    response_group = add_parser.add_mutually_exclusive_group()
    response_group.add_argument(
        "--response",
        type=str,
        default=None,
        help="Optional AI response to store alongside the prompt.",
    )
    response_group.add_argument(
        "--response-file",
        type=Path,
        default=None,
        help="Read the response text from a file.",
    )
    add_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Tag to attach; repeat for multiple tags (at least one is required).",
    )

    library_parser = subparsers.add_parser(
        "library",
        help="Search and browse every saved prompt grouped by day.",
    )
    library_parser.add_argument(
        "--search",
        type=str,
        default="",
        help="Case-insensitive text matched against prompt, summary, and response.",
    )
    library_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Only show prompts carrying this tag; repeat to require several.",
    )
    library_parser.add_argument(
        "--sort",
        choices=[order.value for order in SortOrder],
        default=SortOrder.NEWEST.value,
        help="Chronological order (default: newest).",
    )

    show_parser = subparsers.add_parser("show", help="Print one prompt in full.")
    show_parser.add_argument("prompt_id", type=str, help="Identifier of the prompt.")

    delete_parser = subparsers.add_parser("delete", help="Permanently delete a prompt.")
    delete_parser.add_argument("prompt_id", type=str, help="Identifier of the prompt.")
    delete_parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation question.",
    )

    subparsers.add_parser("tags", help="List every tag in use with its prompt count.")

    sign_in_parser = subparsers.add_parser(
        "sign-in",
        help="Sign in with Google and store the session locally.",
    )
    sign_in_parser.add_argument(
        "--redirect-url",
        type=str,
        default=None,
        help="Redirect URL returned by the OAuth flow (prompted for when omitted).",
    )

    subparsers.add_parser("sign-out", help="Sign out and forget the local session.")
    subparsers.add_parser("whoami", help="Show the signed-in identity.")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Promptly launcher."""
    return build_parser().parse_args(argv)
