"""Load OpenAPI documents from a URL, local file, or stdin.

This module is the I/O boundary in front of the generator: it turns a source
string into a validated :class:`~swagg.models.Document`. JSON and YAML are
both accepted; the format is guessed from the file extension or the
``Content-Type`` header and confirmed by parsing.

Public functions:

* :func:`load_spec` -- read and parse a source into a raw mapping.
* :func:`validate_openapi_version` -- accept 3.0.x / 3.1.x, reject Swagger 2.
* :func:`parse_document` -- validate a raw mapping into a ``Document``.
* :func:`load_document` -- all three in sequence.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from swagg.exceptions import SpecParseError
from swagg.models import Document

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 30.0


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin (``-``).

    Args:
        source: A URL (http/https), file path, or ``-`` for stdin.

    Returns:
        The parsed document as a plain mapping.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        text, hint = _read_stdin(), ""
    elif source.startswith(("http://", "https://")):
        text, hint = _fetch(source)
    else:
        text, hint = _read_file(source)
    logger.debug("Loaded %d characters from %s", len(text), source)
    return parse_content(text, hint=hint)


def _read_stdin() -> str:
    try:
        text = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not text.strip():
        raise SpecParseError("No input received from stdin")
    return text


def _fetch(url: str) -> tuple[str, str]:
    """Download *url* and return its text with a format hint from ``Content-Type``."""
    try:
        response = httpx.get(url, timeout=_FETCH_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    else:
        hint = ""
    return response.text, hint


def _read_file(path: str) -> tuple[str, str]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document not found: {path}")
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        raise SpecParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}.get(suffix, "")
    return text, hint


def parse_content(text: str, hint: str = "") -> dict[str, Any]:
    """Parse *text* as JSON or YAML.

    JSON is tried first unless *hint* is ``"yaml"``; a ``"json"`` hint
    disables the YAML fallback.

    Raises:
        SpecParseError: If the text is neither, or does not hold a mapping.
    """
    errors: list[str] = []

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(text))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_mapping(yaml.safe_load(text))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise SpecParseError(
        "Failed to parse document as JSON or YAML\n  " + "\n  ".join(errors)
    )


def _require_mapping(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        found = type(value).__name__ if value is not None else "empty document"
        raise SpecParseError(f"Document must be a JSON/YAML object (got {found})")
    return value


def validate_openapi_version(raw: dict[str, Any]) -> str:
    """Validate and return the ``openapi`` version string.

    Raises:
        SpecParseError: If the version is missing, is Swagger 2.x, or is not
            a 3.x version.
    """
    if "swagger" in raw:
        raise SpecParseError(
            f"Swagger {raw['swagger']} is not supported. "
            "Only OpenAPI 3.0.x and 3.1.x are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    version = raw.get("openapi")
    if version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version_str}. "
            "Only OpenAPI 3.0.x and 3.1.x are supported."
        )
    if not version_str.startswith(("3.0.", "3.1.")):
        logger.warning("OpenAPI %s is newer than 3.1; generating anyway", version_str)
    return version_str


def parse_document(raw: dict[str, Any]) -> Document:
    """Validate a raw mapping into a :class:`~swagg.models.Document`.

    Raises:
        SpecParseError: If the mapping does not match the document model.
    """
    try:
        return Document.model_validate(raw)
    except ValidationError as exc:
        raise SpecParseError(f"Invalid OpenAPI document: {exc}") from exc


def load_document(source: str) -> Document:
    """Load, version-check and validate the document at *source*."""
    raw = load_spec(source)
    validate_openapi_version(raw)
    return parse_document(raw)
