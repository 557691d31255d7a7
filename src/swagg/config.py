"""Configuration loading and precedence resolution.

Generation settings live in a :class:`~swagg.models.GeneratorConfig`. They
can come from four places, merged by :func:`resolve_config`:

* **CLI flags** -- passed in by :mod:`swagg.app`.
* **Environment** -- ``SWAGG_PACKAGE_NAME``, ``SWAGG_OUTPUT_DIR`` and
  ``SWAGG_STRICT``.
* **Project config** -- ``./swagg.json`` in the working directory, loaded
  by :func:`load_project_config`.
* **Defaults** -- the field defaults of ``GeneratorConfig``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from swagg.exceptions import ConfigError
from swagg.models import GeneratorConfig

_PROJECT_CONFIG_FILENAME = "swagg.json"

ENV_PACKAGE_NAME = "SWAGG_PACKAGE_NAME"
ENV_OUTPUT_DIR = "SWAGG_OUTPUT_DIR"
ENV_STRICT = "SWAGG_STRICT"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``swagg.json``.

    Args:
        directory: Where to look; defaults to the current working directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"Environment variable {name}={value!r} is not a boolean")


# --- Precedence resolution ---


def resolve_config(
    cli_package: Optional[str] = None,
    cli_output_dir: Optional[str] = None,
    cli_strict: Optional[bool] = None,
    cli_reference_docs: Optional[bool] = None,
    cli_hooks: Optional[list[str]] = None,
    directory: Optional[Path] = None,
) -> GeneratorConfig:
    """Resolve generation settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments; ``None`` means "not given")
        2. Environment variables (``SWAGG_PACKAGE_NAME``,
           ``SWAGG_OUTPUT_DIR``, ``SWAGG_STRICT``)
        3. Project config (``./swagg.json``)
        4. Defaults

    Returns:
        The effective :class:`~swagg.models.GeneratorConfig`.

    Raises:
        ConfigError: If the project config or an environment value is
            invalid.
    """
    # 4 + 3. Defaults, overlaid with the project file
    project = load_project_config(directory) or {}
    try:
        config = GeneratorConfig.model_validate(project)
    except ValidationError as exc:
        raise ConfigError(f"Invalid project config: {exc}") from exc

    updates: dict[str, Any] = {}

    # 2. Environment variables
    env_package = os.environ.get(ENV_PACKAGE_NAME)
    if env_package:
        updates["package_name"] = env_package
    env_output = os.environ.get(ENV_OUTPUT_DIR)
    if env_output:
        updates["output_dir"] = env_output
    env_strict = _env_flag(ENV_STRICT)
    if env_strict is not None:
        updates["strict"] = env_strict

    # 1. CLI flags (highest precedence)
    if cli_package is not None:
        updates["package_name"] = cli_package
    if cli_output_dir is not None:
        updates["output_dir"] = cli_output_dir
    if cli_strict is not None:
        updates["strict"] = cli_strict
    if cli_reference_docs is not None:
        updates["reference_docs"] = cli_reference_docs
    if cli_hooks:
        updates["hooks"] = config.hooks.model_copy(update={"enabled": list(cli_hooks)})

    return config.model_copy(update=updates)
