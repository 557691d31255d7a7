"""Typer application and CLI entry point for swagg.

The ``swagg`` console script declared in ``pyproject.toml`` calls
:func:`main`. The application has two commands:

* ``swagg generate SPEC`` -- load a document, generate the bindings (and
  any hook artifacts) and write them under the output directory.
* ``swagg inspect components|routes SPEC`` -- print the component graph or
  the route scopes of a document without writing anything.

Global flags (``--quiet``, ``--verbose``, ``--no-color``, ``--json``,
``--plain``) are applied in :func:`main_callback`, which installs the
:class:`~swagg.output.OutputManager` every command prints through.

See Also:
    :mod:`swagg.config`: Precedence resolution for generation settings.
    :mod:`swagg.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from swagg import __version__
from swagg.exceptions import SwaggError
from swagg.exit_codes import EXIT_GENERIC_FAILURE
from swagg.output import (
    debug,
    error,
    get_output,
    info,
    print_table,
    success,
    suggest,
    warning,
)

app = typer.Typer(
    name="swagg",
    help="Generate typed Python bindings from OpenAPI 3.0/3.1 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

inspect_app = typer.Typer(no_args_is_help=True)
app.add_typer(inspect_app, name="inspect", help="Inspect what a document generates.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"swagg {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Install the global output manager and logging before any command runs."""
    from swagg.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _fail(exc: SwaggError) -> NoReturn:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


# ------------------------------------------------------------------ #
# generate
# ------------------------------------------------------------------ #


@app.command("generate")
def generate_command(
    spec: str = typer.Argument(..., help="Document path, URL, or '-' for stdin."),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output directory."),
    package: Optional[str] = typer.Option(
        None, "--package", help="Import name of the generated package."
    ),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Fail on any build warning."
    ),
    reference_docs: Optional[bool] = typer.Option(
        None,
        "--reference-docs/--no-reference-docs",
        help="Also render API_REFERENCE.md.",
    ),
    hook: Optional[list[str]] = typer.Option(
        None, "--hook", help="Only load these installed hooks (repeatable)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="List the files without writing them."
    ),
) -> None:
    """Generate bindings for SPEC.

    Example::

        swagg generate openapi.yaml --out ./generated --package petstore
    """
    from swagg.config import resolve_config
    from swagg.generate import generate_with_hooks
    from swagg.parser import load_document
    from swagg.writer import write_artifacts

    try:
        document = load_document(spec)
        config = resolve_config(
            cli_package=package,
            cli_output_dir=out,
            cli_strict=strict,
            cli_reference_docs=reference_docs,
            cli_hooks=hook,
        )
        hooks = _load_hooks(config)
        debug(f"Hooks: {', '.join(h.name for h in hooks) or 'none'}")
        result = generate_with_hooks(
            document, hooks, strict=config.strict, package=config.package_name
        )
        files = _render_artifacts(result.artifacts)
    except SwaggError as exc:
        _fail(exc)

    _report_warnings(result.warnings)

    if dry_run:
        print_table(
            ["File", "Lines"],
            [[path, str(text.count("\n"))] for path, text in files.items()],
            title=f"Would write to {config.output_dir}",
        )
        return

    try:
        written = write_artifacts(files, config.output_dir)
    except SwaggError as exc:
        _fail(exc)
    except OSError as exc:
        error(f"Could not write to {config.output_dir}: {exc}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE) from None

    tree = result.bindings.tree
    success(f"Generated package '{tree.package}' ({len(written)} files) in {Path(config.output_dir)}")


def _load_hooks(config: Any) -> list[Any]:
    from swagg.plugins import HookManager
    from swagg.plugins.reference import ReferenceDocsHook

    manager = HookManager()
    if config.reference_docs:
        manager.load_hook(ReferenceDocsHook())
    manager.discover(config.hooks)
    return list(manager.get_pipeline().hooks)


def _render_artifacts(artifacts: dict[str, Any]) -> dict[str, str]:
    """Flatten every artifact into ``relative path -> text``."""
    from swagg.emitter import EmissionTree, render_tree
    from swagg.generate import Bindings

    files: dict[str, str] = {}
    for name, artifact in artifacts.items():
        if isinstance(artifact, Bindings):
            files.update(render_tree(artifact.tree))
        elif isinstance(artifact, EmissionTree):
            files.update(render_tree(artifact))
        else:
            files[name] = artifact
    return files


def _report_warnings(warnings: tuple[Any, ...]) -> None:
    if not warnings:
        return
    warning(f"{len(warnings)} component(s) skipped or renamed")
    print_table(
        ["Code", "Component", "Detail"],
        [[w.code.value, w.name, w.detail] for w in warnings],
        title="Build warnings",
        err=True,
    )
    suggest("Pass --strict to treat build warnings as errors.")


# ------------------------------------------------------------------ #
# inspect
# ------------------------------------------------------------------ #


def _bindings_for(spec: str) -> Any:
    from swagg.generate import generate
    from swagg.parser import load_document

    try:
        return generate(load_document(spec))
    except SwaggError as exc:
        _fail(exc)


@inspect_app.command("components")
def inspect_components(
    spec: str = typer.Argument(..., help="Document path, URL, or '-' for stdin."),
) -> None:
    """List the component graph: namespace, type name and shape."""
    bindings = _bindings_for(spec)
    _report_warnings(bindings.warnings)
    rows = [
        [entry.kind.value, entry.component.name, entry.component.kind]
        for entry in bindings.graph
    ]
    if not rows:
        info("No components.")
        return
    print_table(["Namespace", "Name", "Shape"], rows, title="Components")


@inspect_app.command("routes")
def inspect_routes(
    spec: str = typer.Argument(..., help="Document path, URL, or '-' for stdin."),
) -> None:
    """List route scopes with their operations and response variants."""
    bindings = _bindings_for(spec)
    rows = []
    for scope in bindings.routes:
        for operation in scope.operations:
            variants = ", ".join(f"{v.status} {v.label}" for v in operation.responses)
            rows.append([scope.path, operation.method.value.upper(), operation.name, variants])
    if not rows:
        info("No routes.")
        return
    print_table(["Path", "Method", "Operation", "Responses"], rows, title="Routes")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``swagg`` console script.

    A :class:`~swagg.exceptions.SwaggError` that escapes a command exits
    with the error's ``exit_code``; anything else exits with
    :data:`~swagg.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SwaggError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        if get_output().is_verbose:
            logging.getLogger(__name__).exception("Unhandled error")
        sys.exit(EXIT_GENERIC_FAILURE)
