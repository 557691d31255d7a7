"""Exception hierarchy for swagg.

All exceptions inherit from :class:`SwaggError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`swagg.exit_codes`.
The top-level error handler in :func:`swagg.app.main` catches
``SwaggError`` and exits with the appropriate code.

Subclass hierarchy::

    SwaggError                          (exit 1)
    +-- InvalidUsageError               (exit 2)
    +-- SpecParseError                  (exit 7)
    +-- ConfigError                     (exit 1)
    +-- ResolutionError                 (exit 8)
    |   +-- WrongNamespaceError
    |   |   +-- ExternalReferenceError
    |   +-- NotFoundError
    |   +-- CycleDetectedError
    +-- BuildError                      (exit 9)
    |   +-- NameCollisionError
    |   +-- UnnamedParameterSchemaError
    +-- DuplicateStatusError            (exit 9)
    +-- EmissionError                   (exit 9)
    +-- HookError                       (exit 10)
    |   +-- ArtifactCollisionError
    +-- GenerationError                 (exit 11)

Resolution, build and binding errors are raised by the component that
detects them. The entry points in :mod:`swagg.generate` wrap them in a
:class:`GenerationError` that records where the run was when it failed.
"""

from __future__ import annotations

from typing import Optional

from swagg.exit_codes import (
    EXIT_BUILD_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HOOK_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class SwaggError(Exception):
    """Base exception for all swagg errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`swagg.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SwaggError):
    """Raised for invalid CLI arguments or unsafe output paths."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SwaggError):
    """Raised when the OpenAPI document cannot be parsed or fails validation."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SwaggError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


# --- Resolution ---


class ResolutionError(SwaggError):
    """Base class for ``$ref`` resolution failures."""

    exit_code = EXIT_RESOLUTION_ERROR


class WrongNamespaceError(ResolutionError):
    """The pointer does not live under the namespace expected for its kind."""

    def __init__(self, ref: str, expected_prefix: str):
        super().__init__(
            f"Reference '{ref}' is outside the expected namespace '{expected_prefix}'"
        )
        self.ref = ref
        self.expected_prefix = expected_prefix


class ExternalReferenceError(WrongNamespaceError):
    """The pointer targets another document."""

    def __init__(self, ref: str, expected_prefix: str):
        ResolutionError.__init__(
            self,
            f"External reference '{ref}' is not supported; "
            f"only local pointers under '{expected_prefix}' resolve",
        )
        self.ref = ref
        self.expected_prefix = expected_prefix


class NotFoundError(ResolutionError):
    """The pointer is well-formed but names a component that does not exist."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"No component '{name}' in components/{kind}")
        self.kind = kind
        self.name = name


class CycleDetectedError(ResolutionError):
    """Following an alias chain exceeded the reference depth bound."""

    def __init__(self, ref: str, chain: list[str]):
        shown = " -> ".join(chain[:6])
        if len(chain) > 6:
            shown += " -> ..."
        super().__init__(f"Reference cycle detected while resolving '{ref}': {shown}")
        self.ref = ref
        self.chain = chain


# --- Build ---


class BuildError(SwaggError):
    """Base class for fatal component graph and binding errors."""

    exit_code = EXIT_BUILD_ERROR


class NameCollisionError(BuildError):
    """Two distinct sources map to the same generated identifier."""

    def __init__(self, proposed: str, existing: str, identifier: Optional[str] = None):
        target = f" (both become '{identifier}')" if identifier else ""
        super().__init__(
            f"Name collision: '{proposed}' clashes with existing '{existing}'{target}"
        )
        self.proposed = proposed
        self.existing = existing
        self.identifier = identifier


class UnnamedParameterSchemaError(BuildError):
    """A query parameter is declared inline instead of via ``components/parameters``."""

    def __init__(self, operation: str, parameter: str):
        super().__init__(
            f"Query parameter '{parameter}' of operation '{operation}' must be a "
            "$ref to #/components/parameters/<name>"
        )
        self.operation = operation
        self.parameter = parameter


class DuplicateStatusError(SwaggError):
    """An operation declares two responses that map to the same variant label."""

    exit_code = EXIT_BUILD_ERROR

    def __init__(self, operation: str, status: str, label: Optional[str] = None):
        detail = f" (variant '{label}')" if label else ""
        super().__init__(
            f"Operation '{operation}' declares status '{status}' more than once{detail}; "
            "distinguish the responses with x-variant-name"
        )
        self.operation = operation
        self.status = status
        self.label = label


class EmissionError(SwaggError):
    """An emission node was constructed with an invalid identifier or shape."""

    exit_code = EXIT_BUILD_ERROR


# --- Hooks ---


class HookError(SwaggError):
    """Raised when a hook fails to load or raises during traversal."""

    exit_code = EXIT_HOOK_ERROR


class ArtifactCollisionError(HookError):
    """Two hooks registered an artifact under the same name."""

    def __init__(self, name: str):
        super().__init__(f"Artifact '{name}' has already been registered")
        self.name = name


# --- Top level ---


class GenerationError(SwaggError):
    """Raised by the generation entry points when a run aborts.

    Wraps the underlying :class:`SwaggError` (available as ``cause``) with
    the pipeline stage and, where known, the component, path and operation
    being processed.
    """

    exit_code = EXIT_GENERATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        stage: Optional[str] = None,
        component: Optional[str] = None,
        path: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        context = [
            f"{label}={value}"
            for label, value in (
                ("stage", stage),
                ("component", component),
                ("path", path),
                ("operation", operation),
            )
            if value
        ]
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)
        self.cause = cause
        self.stage = stage
        self.component = component
        self.path = path
        self.operation = operation
