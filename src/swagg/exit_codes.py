"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~swagg.exceptions.SwaggError` subclass. Build scripts
can inspect the exit code to tell a broken document apart from an
unsupported one without parsing stderr.

Example::

    $ swagg generate openapi.yaml --out ./generated
    $ echo $?
    11  # EXIT_GENERATION_ERROR -- the message names the failing stage
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, parsed, or validated."""

EXIT_RESOLUTION_ERROR = 8
"""A ``$ref`` pointer could not be resolved (wrong namespace, missing target, cycle)."""

EXIT_BUILD_ERROR = 9
"""The component graph or binding surface could not be built (name collision,
unnamed parameter schema, duplicate status)."""

EXIT_HOOK_ERROR = 10
"""A hook failed to load or raised during traversal."""

EXIT_GENERATION_ERROR = 11
"""Generation was aborted; the wrapped cause carries the detail."""
