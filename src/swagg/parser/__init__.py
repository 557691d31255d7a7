"""OpenAPI document loading and ``$ref`` resolution.

This sub-package sits in front of the generator: it turns a source string
(JSON or YAML, local file, remote URL or stdin) into a validated
:class:`~swagg.models.Document`, and resolves pointers inside it on demand.

Typical usage::

    from swagg.parser import load_document, resolve
    from swagg.models import ItemKind

    doc = load_document("openapi.yaml")
    pet = resolve("#/components/schemas/Pet", ItemKind.SCHEMAS, doc)

Sub-modules:

* :mod:`~swagg.parser.loader` -- I/O layer plus format detection, version
  check and document validation.
* :mod:`~swagg.parser.resolver` -- Alias-chain aware pointer resolution with
  a bounded depth.
"""

from swagg.parser.loader import (
    load_document,
    load_spec,
    parse_document,
    validate_openapi_version,
)
from swagg.parser.resolver import resolve, resolve_item, resolve_named

__all__ = [
    "load_document",
    "load_spec",
    "parse_document",
    "validate_openapi_version",
    "resolve",
    "resolve_item",
    "resolve_named",
]
