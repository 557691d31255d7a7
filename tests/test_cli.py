"""End-to-end tests for the swagg CLI via Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from swagg import __version__
from swagg.app import app
from swagg.exit_codes import EXIT_GENERATION_ERROR, EXIT_SPEC_PARSE_ERROR

_GLOBAL = ["--plain", "--no-color"]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _write_spec(root: Path, schemas: dict[str, Any], paths: dict[str, Any] | None = None) -> str:
    doc = {
        "openapi": "3.0.3",
        "info": {"title": "Inline API", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas},
    }
    path = root / "openapi.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return str(path)


# ------------------------------------------------------------------ #
# Global options
# ------------------------------------------------------------------ #


class TestGlobalOptions:
    """Test --version and the no-args help."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"swagg {__version__}"

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])
        assert "generate" in result.output
        assert "inspect" in result.output


# ------------------------------------------------------------------ #
# generate
# ------------------------------------------------------------------ #


class TestGenerateCommand:
    """Test writing the generated package to disk."""

    def test_writes_package(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        out = isolated_config / "out"
        result = runner.invoke(app, [*_GLOBAL, "generate", str(petstore_path), "--out", str(out)])
        assert result.exit_code == 0, result.output
        assert "Generated package 'pet_store' (10 files)" in result.output
        api = (out / "pet_store" / "api.py").read_text(encoding="utf-8")
        assert "class PetStoreApi:" in api
        assert (out / "pet_store" / "components" / "schemas.py").is_file()
        assert (out / "pet_store" / "paths" / "pets_pet_id.py").is_file()

    def test_package_option(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        out = isolated_config / "out"
        result = runner.invoke(
            app, [*_GLOBAL, "generate", str(petstore_path), "-o", str(out), "--package", "petstore"]
        )
        assert result.exit_code == 0, result.output
        assert (out / "petstore" / "__init__.py").is_file()

    def test_default_output_dir(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(app, [*_GLOBAL, "generate", str(petstore_path)])
        assert result.exit_code == 0, result.output
        assert (isolated_config / "generated" / "pet_store" / "api.py").is_file()

    def test_project_config(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        (isolated_config / "swagg.json").write_text(
            json.dumps({"output_dir": "bindings", "package_name": "store"}), encoding="utf-8"
        )
        result = runner.invoke(app, [*_GLOBAL, "generate", str(petstore_path)])
        assert result.exit_code == 0, result.output
        assert (isolated_config / "bindings" / "store" / "api.py").is_file()

    def test_dry_run(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        out = isolated_config / "out"
        result = runner.invoke(
            app, [*_GLOBAL, "generate", str(petstore_path), "--out", str(out), "--dry-run"]
        )
        assert result.exit_code == 0, result.output
        assert "File\tLines" in result.output
        assert "pet_store/api.py\t" in result.output
        assert not out.exists()

    def test_reference_docs(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        out = isolated_config / "out"
        result = runner.invoke(
            app, [*_GLOBAL, "generate", str(petstore_path), "--out", str(out), "--reference-docs"]
        )
        assert result.exit_code == 0, result.output
        assert "(11 files)" in result.output
        reference = (out / "API_REFERENCE.md").read_text(encoding="utf-8")
        assert reference.startswith("# Pet Store (1.0.0)")

    def test_warnings_reported(self, runner: CliRunner, isolated_config: Path) -> None:
        spec = _write_spec(
            isolated_config,
            {"Either": {"oneOf": [{"type": "string"}]}, "Name": {"type": "string"}},
        )
        result = runner.invoke(app, [*_GLOBAL, "generate", spec, "--out", "out"])
        assert result.exit_code == 0, result.output
        assert "Warning: 1 component(s) skipped or renamed" in result.output
        assert "unsupported\tEither\t" in result.output
        assert (isolated_config / "out" / "inline_api" / "api.py").is_file()

    def test_strict_fails_on_warnings(self, runner: CliRunner, isolated_config: Path) -> None:
        spec = _write_spec(isolated_config, {"Either": {"oneOf": [{"type": "string"}]}})
        result = runner.invoke(app, [*_GLOBAL, "generate", spec, "--out", "out", "--strict"])
        assert result.exit_code == EXIT_GENERATION_ERROR
        assert "strict mode" in result.output
        assert not (isolated_config / "out").exists()

    def test_missing_document(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, [*_GLOBAL, "generate", "nowhere.yaml"])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR
        assert "Error: Document not found: nowhere.yaml" in result.output

    def test_collision(self, runner: CliRunner, isolated_config: Path) -> None:
        spec = _write_spec(
            isolated_config,
            {"session_user": {"type": "string"}, "SessionUser": {"type": "string"}},
        )
        result = runner.invoke(app, [*_GLOBAL, "generate", spec, "--out", "out"])
        assert result.exit_code == EXIT_GENERATION_ERROR
        assert "Name collision" in result.output
        assert not (isolated_config / "out").exists()

    def test_unknown_hook_loads_nothing(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(
            app, [*_GLOBAL, "generate", str(petstore_path), "--out", "out", "--hook", "absent"]
        )
        assert result.exit_code == 0, result.output
        assert "(10 files)" in result.output


# ------------------------------------------------------------------ #
# inspect
# ------------------------------------------------------------------ #


class TestInspectCommands:
    """Test the read-only inspection commands."""

    def test_components(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(app, [*_GLOBAL, "inspect", "components", str(petstore_path)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert "Namespace\tName\tShape" in lines
        assert "parameters\tlimit\tscalar" in lines
        assert "schemas\tPet\tobject" in lines
        assert "schemas\tPetPetType\tenum" in lines
        assert "requestBodies\tCreatePetRequestBody\tobject" in lines

    def test_components_json(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(app, ["--json", "inspect", "components", str(petstore_path)])
        assert result.exit_code == 0, result.output
        records = json.loads(result.output)
        assert records[0] == {"Namespace": "parameters", "Name": "limit", "Shape": "scalar"}

    def test_no_components(self, runner: CliRunner, isolated_config: Path) -> None:
        spec = _write_spec(isolated_config, {})
        result = runner.invoke(app, [*_GLOBAL, "inspect", "components", spec])
        assert result.exit_code == 0
        assert "No components." in result.output

    def test_routes(
        self, runner: CliRunner, isolated_config: Path, petstore_path: Path
    ) -> None:
        result = runner.invoke(app, [*_GLOBAL, "inspect", "routes", str(petstore_path)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert "/pets\tGET\tlistPets\t200 Ok, default Default" in lines
        assert "/pets\tPOST\tcreatePet\t201 Created" in lines
        assert "/pets/{petId}\tGET\tshowPetById\t200 Ok, 404 NotFound" in lines

    def test_routes_missing_document(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, [*_GLOBAL, "inspect", "routes", "missing.json"])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR
