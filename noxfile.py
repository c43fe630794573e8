"""Nox sessions for Digital Rain development tasks."""

from __future__ import annotations

from pathlib import Path

import sys
import nox


ROOT = Path(__file__).parent
PACKAGE = "src/digital_rain"

nox.options.error_on_missing_interpreters = False


def _has_mypy_config() -> bool:
    pyproject = ROOT / "pyproject.toml"
    if (ROOT / "mypy.ini").is_file():
        return True
    if pyproject.is_file():
        return "[tool.mypy]" in pyproject.read_text(encoding="utf-8")
    return False


@nox.session
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    """Apply ruff fixes and formatting."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session
def tests(session: nox.Session) -> None:
    """Run pytest in CI-friendly mode (real-time scheduler tests skipped)."""
    session.install("-e", ".[dev]")
    session.env["DIGITAL_RAIN_CI"] = "1"
    try:
        session.run("pytest", "-q")
    finally:
        session.env.pop("DIGITAL_RAIN_CI", None)


@nox.session
def typecheck(session: nox.Session) -> None:
    """Run mypy when a config is present."""
    if not _has_mypy_config():
        session.skip("mypy config not found")
    session.install("-e", ".[dev]")
    session.run("mypy", PACKAGE)


@nox.session
def coverage(session: nox.Session) -> None:
    """Run coverage reporting."""
    session.install("-e", ".[dev]")
    session.install("coverage")
    session.run("coverage", "run", "--source=digital_rain", "-m", "pytest")
    session.run("coverage", "report", "--fail-under=80", "-m")


@nox.session
def build(session: nox.Session) -> None:
    """Build sdist and wheel artifacts."""
    session.install("build")
    session.run("python", "-m", "build")


# --------------------------------------------------
#                  LOCAL DEV TESTING
# --------------------------------------------------


@nox.session(name="tests-dev", venv_backend="none")
def tests_dev(session: nox.Session) -> None:
    """Fast local pytest using active venv."""
    session.run("python", "-m", "pytest", "-q", external=True)


@nox.session(name="local-dev", venv_backend="none")
def local_dev(session: nox.Session) -> None:
    """Lint, typecheck and test using the active venv."""
    session.run("python", "-m", "ruff", "check", ".", external=True)
    if _has_mypy_config():
        session.run("python", "-m", "mypy", PACKAGE, external=True)
    session.run(sys.executable, "-m", "pytest", "-q", external=True)
