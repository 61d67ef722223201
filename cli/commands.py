"""CLI command handlers for Promptly.

Each handler receives the wired application, the parsed arguments, and a
logger, and returns the process exit code. Handlers run their async work in
a fresh event loop through :func:`asyncio.run`.

Updates:
  v0.2.1 - 2026-10-19 - Name the expired cached identity and split sign-in from backend exit codes.
  v0.2.0 - 2026-10-09 - Gate protected commands on the session store.
  v0.1.1 - 2026-10-06 - Add show, tags, and whoami commands.
  v0.1.0 - 2026-09-27 - Introduce home, add, library, delete, and session commands.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core import (
    AuthError,
    RepositoryError,
    RepositoryNotFoundError,
    RouteDecision,
    SortOrder,
    format_day_label,
    format_time_label,
    gate_route,
    require_identity,
)
from core.pipeline import count_records

from .utils import ask_confirmation, indent_block, print_and_log, read_text_argument

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.factory import PromptlyApp
    from models.identity_model import Identity
    from models.prompt_model import PromptRecord
else:  # pragma: no cover - runtime placeholders for type-only imports
    PromptlyApp = object

CommandHandler = Callable[[PromptlyApp | None, argparse.Namespace, logging.Logger], int]

EXIT_OK = 0
EXIT_CANCELLED = 1
EXIT_AUTH_REQUIRED = 4
EXIT_INVALID_INPUT = 5
EXIT_BACKEND_FAILURE = 6

SIGN_IN_HINT = "You are not signed in. Run `promptly sign-in` first."
EXPIRED_SESSION_MESSAGE = "The saved session for {name} has expired."


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_app: bool = True


def _require_app(app: PromptlyApp | None) -> PromptlyApp:
    if app is None:
        raise ValueError("Promptly services are required for this command.")
    return app


async def _initialize_session(app: PromptlyApp, logger: logging.Logger) -> Identity | None:
    """Resolve the session, naming the cached identity when it did not survive."""
    cached = app.session.cached_identity()
    if cached is not None:
        logger.debug("Restoring session for %s", cached.label)
    identity = await app.session.initialize()
    if identity is None and cached is not None:
        print(EXPIRED_SESSION_MESSAGE.format(name=cached.label))
    return identity


async def _enter_protected(app: PromptlyApp, logger: logging.Logger) -> bool:
    """Initialise the session and report whether a protected screen may run."""
    await _initialize_session(app, logger)
    decision = gate_route(app.session)
    if decision is RouteDecision.ALLOW:
        return True
    print_and_log(logger, logging.WARNING, SIGN_IN_HINT)
    return False


def _format_tags(tags: tuple[str, ...]) -> str:
    return " ".join(f"#{tag}" for tag in tags)


def _print_record_line(record: PromptRecord, *, with_time: bool) -> None:
    stamp = format_time_label(record.created_at) if with_time else ""
    header = "  ".join(part for part in (record.id, stamp, _format_tags(record.tags)) if part)
    print(f"  {header}")
    print(indent_block(record.summary or record.prompt, "      "))


async def _home(app: PromptlyApp, logger: logging.Logger) -> int:
    if not await _enter_protected(app, logger):
        return EXIT_AUTH_REQUIRED
    identity = app.session.identity
    result = await app.dashboard().recent()
    if identity is not None:
        print(f"Welcome back, {identity.label}.")
    if not result.ok:
        print_and_log(logger, logging.ERROR, f"Could not load recent prompts: {result.error}")
        return EXIT_BACKEND_FAILURE
    if not result.records:
        print("No prompts yet. Save one with `promptly add`.")
        return EXIT_OK
    print("Recent activity:")
    for record in result.records:
        _print_record_line(record, with_time=False)
    return EXIT_OK


def run_home(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_home(_require_app(app), logger))


async def _add(app: PromptlyApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    await _initialize_session(app, logger)
    try:
        body = read_text_argument(args.prompt, args.prompt_file)
        response = read_text_argument(args.response, args.response_file)
    except OSError as exc:
        print_and_log(logger, logging.ERROR, f"Unable to read input: {exc}")
        return EXIT_INVALID_INPUT
    composer = app.composer(initial_prompt=body)
    composer.draft.response = response
    for raw_tag in args.tags or []:
        composer.draft.tag_draft = raw_tag
        if not composer.draft.commit_tag() and composer.draft.tag_draft:
            logger.warning("Ignoring tag %r: nothing left after normalisation", raw_tag)
            composer.draft.tag_draft = ""
    result = await composer.save()
    if not result.saved:
        logger.error("Prompt was not saved: %s", result.error)
        if result.auth_required:
            print(SIGN_IN_HINT)
            return EXIT_AUTH_REQUIRED
        return EXIT_INVALID_INPUT if result.rejected else EXIT_BACKEND_FAILURE
    if result.record is not None:
        print(f"Saved prompt {result.record.id}")
        print(indent_block(result.record.summary, "  "))
    else:
        print("Prompt saved.")
    return EXIT_OK


def run_add(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_add(_require_app(app), args, logger))


async def _library(app: PromptlyApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    if not await _enter_protected(app, logger):
        return EXIT_AUTH_REQUIRED
    library = app.library()
    result = await library.load()
    if not result.ok:
        return EXIT_BACKEND_FAILURE
    library.set_search(args.search or "")
    for tag in dict.fromkeys(args.tags or ()):
        library.toggle_tag(tag)
    library.set_sort_order(SortOrder(args.sort))
    if not library.records:
        print("No prompts yet. Save one with `promptly add`.")
        return EXIT_OK
    groups = library.timeline()
    if not groups:
        print("No prompts match. Try adjusting your filters or search term.")
        return EXIT_OK
    suffix = " matching filters" if library.filter.is_active else ""
    print(f"{count_records(groups)} of {len(library.records)} prompt(s){suffix}")
    for group in groups:
        print()
        print(group.label)
        for record in group.records:
            _print_record_line(record, with_time=True)
    return EXIT_OK


def run_library(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_library(_require_app(app), args, logger))


async def _show(app: PromptlyApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    if not await _enter_protected(app, logger):
        return EXIT_AUTH_REQUIRED
    identity = require_identity(app.session)
    try:
        record = await app.repository.get_prompt(args.prompt_id, user_id=identity.id)
    except RepositoryNotFoundError:
        print_and_log(logger, logging.WARNING, f"Prompt {args.prompt_id} not found.")
        return EXIT_CANCELLED
    except RepositoryError as exc:
        print_and_log(logger, logging.ERROR, f"Could not load prompt: {exc}")
        return EXIT_BACKEND_FAILURE
    print(f"Prompt {record.id}")
    print(f"Created: {format_day_label(record.created_at)} {format_time_label(record.created_at)}")
    print(f"Tags: {_format_tags(record.tags)}")
    print("\nSummary:")
    print(indent_block(record.summary, "  "))
    print("\nPrompt:")
    print(indent_block(record.prompt, "  "))
    if record.response:
        print("\nResponse:")
        print(indent_block(record.response, "  "))
    return EXIT_OK


def run_show(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_show(_require_app(app), args, logger))


async def _delete(app: PromptlyApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    if not await _enter_protected(app, logger):
        return EXIT_AUTH_REQUIRED
    library = app.library()

    def _confirm(question: str) -> bool:
        return True if args.yes else ask_confirmation(question)

    result = await library.delete(args.prompt_id, _confirm)
    if result.deleted:
        return EXIT_OK
    if result.auth_required:
        return EXIT_AUTH_REQUIRED
    if result.error is not None:
        logger.error("Prompt %s was not deleted: %s", args.prompt_id, result.error)
        return EXIT_BACKEND_FAILURE
    return EXIT_CANCELLED


def run_delete(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_delete(_require_app(app), args, logger))


async def _tags(app: PromptlyApp, logger: logging.Logger) -> int:
    if not await _enter_protected(app, logger):
        return EXIT_AUTH_REQUIRED
    library = app.library()
    result = await library.load()
    if not result.ok:
        return EXIT_BACKEND_FAILURE
    counts = Counter(tag for record in library.records for tag in record.tags)
    if not counts:
        print("No tags yet.")
        return EXIT_OK
    for tag in library.all_tags():
        print(f"#{tag} ({counts[tag]})")
    return EXIT_OK


def run_tags(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_tags(_require_app(app), logger))


async def _sign_in(app: PromptlyApp, args: argparse.Namespace, logger: logging.Logger) -> int:
    await app.session.initialize()
    redirect_url = args.redirect_url
    if not redirect_url:
        print("Open this URL in your browser to sign in with Google:")
        print(app.session.sign_in_url())
        try:
            redirect_url = input("Paste the URL you were redirected to: ").strip()
        except EOFError:
            redirect_url = ""
    if not redirect_url:
        print_and_log(logger, logging.WARNING, "Sign-in cancelled.")
        return EXIT_CANCELLED
    try:
        identity = await app.session.complete_sign_in(redirect_url)
    except AuthError as exc:
        print_and_log(logger, logging.ERROR, f"Sign-in failed: {exc}")
        return EXIT_AUTH_REQUIRED
    if identity is None:
        print_and_log(logger, logging.ERROR, "Sign-in failed: no user returned.")
        return EXIT_AUTH_REQUIRED
    print_and_log(logger, logging.INFO, f"Signed in as {identity.label}")
    return EXIT_OK


def run_sign_in(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_sign_in(_require_app(app), args, logger))


async def _sign_out(app: PromptlyApp, logger: logging.Logger) -> int:
    await app.session.initialize()
    await app.session.sign_out()
    print_and_log(logger, logging.INFO, "Signed out.")
    return EXIT_OK


def run_sign_out(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_sign_out(_require_app(app), logger))


async def _whoami(app: PromptlyApp, logger: logging.Logger) -> int:
    identity = await _initialize_session(app, logger)
    if identity is None:
        print(SIGN_IN_HINT)
        return EXIT_AUTH_REQUIRED
    print(f"Name: {identity.label}")
    print(f"Email: {identity.email or 'n/a'}")
    print(f"User ID: {identity.id}")
    print(f"Signed in: {identity.last_sign_in.astimezone():%Y-%m-%d %H:%M}")
    return EXIT_OK


def run_whoami(app: PromptlyApp | None, args: argparse.Namespace, logger: logging.Logger) -> int:
    return asyncio.run(_whoami(_require_app(app), logger))


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    None: CommandSpec(run_home),
    "home": CommandSpec(run_home),
    "add": CommandSpec(run_add),
    "library": CommandSpec(run_library),
    "show": CommandSpec(run_show),
    "delete": CommandSpec(run_delete),
    "tags": CommandSpec(run_tags),
    "sign-in": CommandSpec(run_sign_in),
    "sign-out": CommandSpec(run_sign_out),
    "whoami": CommandSpec(run_whoami),
}


__all__ = ["COMMAND_SPECS", "CommandSpec"]
