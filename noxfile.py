"""Nox sessions for chatmark."""

from pathlib import Path

import nox


PYPROJECT = nox.project.load_toml("pyproject.toml")
PYTHON_VERSIONS = nox.project.python_versions(PYPROJECT, max_version="3.14")
LATEST_PYTHON = PYTHON_VERSIONS[-1]
SAMPLE_REPLY = Path("tests") / "data" / "reply.md"

nox.options.default_venv_backend = "uv"
nox.options.sessions = ["tests", "cli"]


def _install(session: nox.Session, *groups: str) -> None:
    extras = nox.project.dependency_groups(PYPROJECT, *groups) if groups else ()
    session.install("-e", ".", *extras)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the pytest suite on every supported interpreter."""
    _install(session, "dev")
    session.run("pytest", *session.posargs)


@nox.session(python=LATEST_PYTHON)
def coverage(session: nox.Session) -> None:
    """Run the suite once with line coverage of the chatmark package."""
    _install(session, "dev")
    session.run("pytest", "--cov=chatmark", "--cov-report=term-missing", *session.posargs)


@nox.session(python=LATEST_PYTHON)
def cli(session: nox.Session) -> None:
    """Smoke-test the console script on the sample reply."""
    _install(session)
    output = Path(session.create_tmp()) / "reply.html"
    session.run("chatmark", "--version")
    session.run("chatmark", "render", str(SAMPLE_REPLY), "--output", str(output))
    session.run("chatmark", "artifacts", str(SAMPLE_REPLY))
