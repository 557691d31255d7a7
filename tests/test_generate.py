"""Tests for swagg.generate (the public entry points)."""

from __future__ import annotations

import ast

import pytest

from swagg import Bindings, GenerationResult, generate, generate_with_hooks
from swagg.emitter import render_tree
from swagg.exceptions import (
    ArtifactCollisionError,
    CycleDetectedError,
    DuplicateStatusError,
    GenerationError,
    HookError,
    NameCollisionError,
    NotFoundError,
    SpecParseError,
    UnnamedParameterSchemaError,
)
from swagg.exit_codes import EXIT_GENERATION_ERROR
from swagg.generate import PRIMARY_ARTIFACT
from swagg.plugins import Hook


class ArtifactHook(Hook):
    """Registers one text artifact and records whether it ran."""

    def __init__(self, artifact: str = "notes.txt") -> None:
        self.artifact = artifact
        self.operations: list[str] = []

    @property
    def name(self) -> str:
        return "artifact"

    def on_operation(self, method, path, operation, ctx) -> None:
        self.operations.append(f"{method.value} {path}")

    def finish(self, ctx) -> None:
        ctx.register_artifact(self.artifact, "\n".join(self.operations))


class ExplodingHook(Hook):
    @property
    def name(self) -> str:
        return "exploding"

    def post_components(self, ctx) -> None:
        raise RuntimeError("kaboom")


_EITHER = {"oneOf": [{"type": "string"}, {"type": "integer"}]}


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    """Test the bindings-only entry point."""

    def test_from_document(self, petstore_doc) -> None:
        bindings = generate(petstore_doc)
        assert isinstance(bindings, Bindings)
        assert bindings.tree.package == "pet_store"
        assert bindings.warnings == ()
        assert [scope.path for scope in bindings.routes] == ["/pets", "/pets/{petId}"]
        assert "Pet" in bindings.graph

    def test_from_raw_mapping(self, petstore_raw) -> None:
        assert generate(petstore_raw).tree == generate(petstore_raw).tree

    def test_package_override(self, petstore_doc) -> None:
        assert generate(petstore_doc, package="petstore").tree.package == "petstore"

    def test_deterministic_render(self, petstore_doc) -> None:
        first = render_tree(generate(petstore_doc).tree)
        second = render_tree(generate(petstore_doc).tree)
        assert first == second

    def test_sources_parse(self, session_doc) -> None:
        for path, source in render_tree(generate(session_doc).tree).items():
            ast.parse(source, filename=path)

    def test_session_scope(self, session_doc) -> None:
        (scope,) = generate(session_doc).routes
        assert scope.path == "/session"
        assert [op.method.value for op in scope.operations] == ["get", "post"]

    def test_unsupported_schema_is_skipped(self, make_doc) -> None:
        doc = make_doc(
            {"Either": _EITHER, "Name": {"type": "string"}},
            paths={"/ping": {"get": {"responses": {"204": {"description": "ok"}}}}},
        )
        bindings = generate(doc)
        assert "Either" not in bindings.graph
        assert "Name" in bindings.graph
        assert [w.name for w in bindings.warnings] == ["Either"]
        assert len(bindings.routes) == 1


# ---------------------------------------------------------------------------
# Error wrapping
# ---------------------------------------------------------------------------


class TestGenerationErrors:
    """Test that every failure becomes a GenerationError with a stage."""

    def test_strict_mode(self, make_doc) -> None:
        with pytest.raises(GenerationError, match="1 build warning") as exc_info:
            generate(make_doc({"Either": _EITHER}), strict=True)
        assert exc_info.value.stage == "build"
        assert exc_info.value.component == "Either"
        assert exc_info.value.exit_code == EXIT_GENERATION_ERROR

    def test_strict_mode_without_warnings(self, petstore_doc) -> None:
        assert generate(petstore_doc, strict=True).warnings == ()

    def test_strict_mode_accepts_non_json_bodies(self, make_doc) -> None:
        csv = {"content": {"text/csv": {"schema": {"type": "string"}}}}
        doc = make_doc(
            paths={
                "/rows": {
                    "post": {
                        "operationId": "uploadRows",
                        "requestBody": {"$ref": "#/components/requestBodies/Upload"},
                        "responses": {"200": {"$ref": "#/components/responses/Csv"}},
                    }
                }
            },
            responses={"Csv": {"description": "Rows", **csv}},
            requestBodies={"Upload": csv},
        )
        bindings = generate(doc, strict=True)
        assert bindings.warnings == ()
        (operation,) = bindings.routes[0].operations
        assert operation.request_body is None
        assert operation.responses[0].payload is None

    def test_parse_stage(self) -> None:
        with pytest.raises(GenerationError, match="stage=parse") as exc_info:
            generate({"openapi": "3.0.3", "paths": ["not", "a", "mapping"]})
        assert isinstance(exc_info.value.cause, SpecParseError)

    def test_collision_in_build(self, make_doc) -> None:
        doc = make_doc({"session_user": {"type": "string"}, "SessionUser": {"type": "string"}})
        with pytest.raises(GenerationError) as exc_info:
            generate(doc)
        err = exc_info.value
        assert err.stage == "build"
        assert isinstance(err.cause, NameCollisionError)
        assert err.component == "SessionUser"

    def test_missing_reference(self, make_doc) -> None:
        with pytest.raises(GenerationError, match="component=Nowhere") as exc_info:
            generate(make_doc({"Alias": {"$ref": "#/components/schemas/Nowhere"}}))
        assert isinstance(exc_info.value.cause, NotFoundError)

    def test_reference_cycle(self, make_doc) -> None:
        doc = make_doc(
            {
                "A": {"$ref": "#/components/schemas/B"},
                "B": {"$ref": "#/components/schemas/A"},
            }
        )
        with pytest.raises(GenerationError) as exc_info:
            generate(doc)
        assert exc_info.value.stage == "build"
        assert isinstance(exc_info.value.cause, CycleDetectedError)

    def test_bind_stage(self, make_doc) -> None:
        param = {"name": "limit", "in": "query", "schema": {"type": "integer"}}
        doc = make_doc(
            paths={"/pets": {"get": {"parameters": [param], "responses": {"200": {"description": "ok"}}}}}
        )
        with pytest.raises(GenerationError) as exc_info:
            generate(doc)
        err = exc_info.value
        assert err.stage == "bind"
        assert err.operation == "get_pets"
        assert isinstance(err.cause, UnnamedParameterSchemaError)

    def test_duplicate_status(self, make_doc) -> None:
        responses = {
            "200": {"description": "ok"},
            "201": {"description": "also", "x-variant-name": "Ok"},
        }
        doc = make_doc(paths={"/pets": {"get": {"responses": responses}}})
        with pytest.raises(GenerationError) as exc_info:
            generate(doc)
        assert isinstance(exc_info.value.cause, DuplicateStatusError)

    def test_distinct_labels_accepted(self, make_doc) -> None:
        responses = {
            "200": {"description": "ok"},
            "201": {"description": "also", "x-variant-name": "Accepted"},
        }
        doc = make_doc(paths={"/pets": {"get": {"responses": responses}}})
        (scope,) = generate(doc).routes
        assert [v.label for v in scope.operations[0].responses] == ["Ok", "Accepted"]

    def test_emit_stage(self, make_doc) -> None:
        ok = {"responses": {"200": {"description": "ok"}}}
        doc = make_doc(
            paths={
                "/pet-items": {"get": {"operationId": "a", **ok}},
                "/pet_items": {"get": {"operationId": "b", **ok}},
            }
        )
        with pytest.raises(GenerationError) as exc_info:
            generate(doc)
        assert exc_info.value.stage == "emit"
        assert isinstance(exc_info.value.cause, NameCollisionError)


# ---------------------------------------------------------------------------
# generate_with_hooks
# ---------------------------------------------------------------------------


class TestGenerateWithHooks:
    """Test artifacts registered by hooks."""

    def test_artifacts(self, petstore_doc) -> None:
        result = generate_with_hooks(petstore_doc, [ArtifactHook()])
        assert isinstance(result, GenerationResult)
        assert list(result.artifacts) == [PRIMARY_ARTIFACT, "notes.txt"]
        assert result.artifacts["notes.txt"] == "get /pets\npost /pets\nget /pets/{petId}"
        assert result.bindings.tree.package == "pet_store"

    def test_no_hooks(self, session_doc) -> None:
        result = generate_with_hooks(session_doc, [])
        assert list(result.artifacts) == [PRIMARY_ARTIFACT]

    def test_warnings_carried(self, make_doc) -> None:
        result = generate_with_hooks(make_doc({"Either": _EITHER}), [])
        assert [w.name for w in result.warnings] == ["Either"]

    def test_reserved_name(self, petstore_doc) -> None:
        with pytest.raises(GenerationError, match="stage=hooks") as exc_info:
            generate_with_hooks(petstore_doc, [ArtifactHook(PRIMARY_ARTIFACT)])
        assert isinstance(exc_info.value.cause, ArtifactCollisionError)

    def test_hook_failure(self, petstore_doc) -> None:
        with pytest.raises(GenerationError, match="kaboom") as exc_info:
            generate_with_hooks(petstore_doc, [ExplodingHook()])
        assert exc_info.value.stage == "hooks"
        assert isinstance(exc_info.value.cause, HookError)

    def test_hooks_skipped_when_binding_fails(self, make_doc) -> None:
        hook = ArtifactHook()
        doc = make_doc({"A": {"type": "string"}, "a": {"type": "string"}})
        with pytest.raises(GenerationError):
            generate_with_hooks(doc, [hook])
        assert hook.operations == []
