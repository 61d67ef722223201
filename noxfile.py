"""Nox sessions for Promptly: `nox -s lint`, `nox -s typecheck`, `nox -s test`.

Tools are taken from the project `.venv` (`pip install -e .[dev]`).
"""

from __future__ import annotations

from pathlib import Path

import nox

SOURCES = ("main.py", "cli", "config", "core", "models", "tests")
VENV_BIN = Path(".venv") / "bin"


def _tool(session: nox.Session, name: str) -> str:
    path = VENV_BIN / name
    if not path.exists():
        session.error(f"{path} not found; run `pip install -e .[dev]` inside .venv first.")
    return str(path)


@nox.session(venv_backend="none")
def lint(session: nox.Session) -> None:
    ruff = _tool(session, "ruff")
    session.run(ruff, "check", *SOURCES, external=True)
    session.run(ruff, "format", "--check", *SOURCES, external=True)


@nox.session(venv_backend="none")
def typecheck(session: nox.Session) -> None:
    session.run(_tool(session, "pyright"), external=True)


@nox.session(venv_backend="none")
def test(session: nox.Session) -> None:
    """Run the suite with coverage over the core and model packages."""
    session.run(
        _tool(session, "pytest"),
        "-n",
        "auto",
        "--cov=core",
        "--cov=models",
        "--cov-report=term-missing",
        "tests",
        external=True,
    )
