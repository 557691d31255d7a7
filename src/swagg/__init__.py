"""swagg -- Generate typed Python bindings from OpenAPI 3.0/3.1 documents.

This package turns an OpenAPI document into an importable Python package:
pydantic models for every component, one module per route scope holding the
response variants and query models of its operations, and an ``Api`` class
whose ``bind_*`` methods register typed handlers.

Typical usage::

    from swagg import generate
    from swagg.emitter import render_tree
    from swagg.parser import load_document

    bindings = generate(load_document("openapi.yaml"))
    files = render_tree(bindings.tree)

or from the command line::

    swagg generate openapi.yaml --out ./generated

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: Generation settings and their precedence chain.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    generate: The ``generate`` / ``generate_with_hooks`` entry points.
    naming: Wire name to Python identifier conversion.
    output: stdout/stderr formatting system with Rich support.
    writer: Atomic writing of rendered files.
    binder: Route-scope grouping and handler binding plans.

Subpackages:
    parser: Document loading and $ref resolution.
    highway: Component graph construction.
    emitter: Module tree building and source rendering.
    plugins: Generation hooks and their traversal pipeline.
"""

__version__ = "0.1.0"

from swagg.generate import Bindings, GenerationResult, generate, generate_with_hooks

__all__ = [
    "__version__",
    "Bindings",
    "GenerationResult",
    "generate",
    "generate_with_hooks",
]
