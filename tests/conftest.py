"""Shared test fixtures for swagg.

Provides fixture documents (raw mappings and validated ``Document``
objects), a small helper for building documents inline, isolation of the
``SWAGG_*`` environment, and output state management. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from swagg.models import Document
from swagg.output import OutputFormat, OutputManager, reset_output, set_output

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return yaml.safe_load(f)


def make_document(
    schemas: dict[str, Any] | None = None,
    paths: dict[str, Any] | None = None,
    **components: Any,
) -> Document:
    """Build a ``Document`` from component tables and paths."""
    raw: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}, **components},
    }
    return Document.model_validate(raw)


@pytest.fixture
def make_doc():
    """Factory fixture wrapping :func:`make_document`."""
    return make_document


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw petstore document (3.0.3, YAML)."""
    return load_fixture("petstore.yaml")


@pytest.fixture
def petstore_doc(petstore_raw: dict[str, Any]) -> Document:
    return Document.model_validate(petstore_raw)


@pytest.fixture
def session_raw() -> dict[str, Any]:
    """Raw session document (3.1.0): empty and form-encoded bodies."""
    return load_fixture("session_api.yaml")


@pytest.fixture
def session_doc(session_raw: dict[str, Any]) -> Document:
    return Document.model_validate(session_raw)


@pytest.fixture
def petstore_path() -> Path:
    return FIXTURES_DIR / "petstore.yaml"


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear ``SWAGG_*`` variables and run the test inside *tmp_path*.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in ["SWAGG_PACKAGE_NAME", "SWAGG_OUTPUT_DIR", "SWAGG_STRICT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()
