"""Tests for the hook protocol and the visitor pipeline."""

from __future__ import annotations

from typing import Any

import pytest

from swagg.exceptions import ArtifactCollisionError, HookError, NotFoundError
from swagg.models import ItemKind
from swagg.plugins import (
    ArtifactCollector,
    FinishContext,
    Hook,
    HookContext,
    Stage,
    VisitorPipeline,
)


class RecordingHook(Hook):
    """Records every callback it receives."""

    def __init__(self, label: str = "recorder", log: list[str] | None = None) -> None:
        self._label = label
        self.calls: list[str] = [] if log is None else log

    @property
    def name(self) -> str:
        return self._label

    def pre_components(self, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:pre_components")

    def on_item(self, kind: ItemKind, name: str, item: Any, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:{kind.value}:{name}")

    def post_components(self, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:post_components")

    def pre_paths(self, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:pre_paths")

    def on_operation(self, method, path, operation, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:{method.value} {path}")

    def post_paths(self, ctx: HookContext) -> None:
        self.calls.append(f"{self._label}:post_paths")

    def finish(self, ctx: FinishContext) -> None:
        self.calls.append(f"{self._label}:finish")


class SchemaCounter(Hook):
    """Uses the kind-specific callback and registers an artifact."""

    def __init__(self, artifact: str = "count.txt") -> None:
        self.schemas: list[str] = []
        self._artifact = artifact

    @property
    def name(self) -> str:
        return "counter"

    def on_schema(self, name, schema, ctx: HookContext) -> None:
        self.schemas.append(name)

    def finish(self, ctx: FinishContext) -> None:
        ctx.register_artifact(self._artifact, f"{len(self.schemas)}\n")


class FailingHook(Hook):
    @property
    def name(self) -> str:
        return "failing"

    def pre_paths(self, ctx: HookContext) -> None:
        raise ValueError("boom")


# ---------------------------------------------------------------------------
# Traversal order
# ---------------------------------------------------------------------------


class TestTraversal:
    """Test the order in which callbacks fire."""

    def test_stage_order(self, petstore_doc) -> None:
        hook = RecordingHook()
        VisitorPipeline([hook]).run(petstore_doc)
        assert hook.calls == [
            "recorder:pre_components",
            "recorder:responses:ErrorResponse",
            "recorder:parameters:limit",
            "recorder:schemas:Pet",
            "recorder:schemas:Pets",
            "recorder:schemas:Error",
            "recorder:post_components",
            "recorder:pre_paths",
            "recorder:get /pets",
            "recorder:post /pets",
            "recorder:get /pets/{petId}",
            "recorder:post_paths",
            "recorder:finish",
        ]

    def test_hooks_interleave_in_registration_order(self, session_doc) -> None:
        log: list[str] = []
        VisitorPipeline([RecordingHook("a", log), RecordingHook("b", log)]).run(session_doc)
        assert log[:4] == [
            "a:pre_components",
            "b:pre_components",
            "a:schemas:SessionUser",
            "b:schemas:SessionUser",
        ]
        assert log[-2:] == ["a:finish", "b:finish"]

    def test_method_order(self, make_doc) -> None:
        ok = {"responses": {"200": {"description": "ok"}}}
        doc = make_doc(paths={"/x": {"delete": ok, "post": ok, "get": ok}})
        hook = RecordingHook()
        VisitorPipeline([hook]).run(doc)
        operations = [call for call in hook.calls if "/x" in call]
        assert operations == ["recorder:get /x", "recorder:post /x", "recorder:delete /x"]

    def test_items_arrive_resolved(self, make_doc) -> None:
        doc = make_doc(
            {"Id": {"type": "string"}, "PetId": {"$ref": "#/components/schemas/Id"}}
        )
        seen: dict[str, Any] = {}

        class Grab(Hook):
            name = "grab"

            def on_schema(self, name, schema, ctx):
                seen[name] = schema

        VisitorPipeline([Grab()]).run(doc)
        assert seen["PetId"].type == "string"

    def test_kind_dispatch(self, petstore_doc) -> None:
        counter = SchemaCounter()
        artifacts = VisitorPipeline([counter]).run(petstore_doc)
        assert counter.schemas == ["Pet", "Pets", "Error"]
        assert artifacts == {"count.txt": "3\n"}

    def test_context_resolves(self, petstore_doc) -> None:
        ctx = HookContext(petstore_doc, Stage.PATHS)
        pet = ctx.resolve("#/components/schemas/Pet", ItemKind.SCHEMAS)
        assert pet.required == ["id", "name"]


# ---------------------------------------------------------------------------
# Failures and artifacts
# ---------------------------------------------------------------------------


class TestFailures:
    """Test error wrapping and artifact collisions."""

    def test_hook_exception_wrapped(self, petstore_doc) -> None:
        with pytest.raises(HookError, match="Hook 'failing' failed during pre_paths: boom"):
            VisitorPipeline([FailingHook()]).run(petstore_doc)

    def test_first_failure_aborts(self, petstore_doc) -> None:
        later = RecordingHook("later")
        with pytest.raises(HookError):
            VisitorPipeline([FailingHook(), later]).run(petstore_doc)
        assert "later:pre_paths" not in later.calls
        assert "later:finish" not in later.calls

    def test_swagg_errors_propagate(self, petstore_doc) -> None:
        class BadRef(Hook):
            name = "bad-ref"

            def post_paths(self, ctx):
                ctx.resolve("#/components/schemas/Missing", ItemKind.SCHEMAS)

        with pytest.raises(NotFoundError):
            VisitorPipeline([BadRef()]).run(petstore_doc)

    def test_artifact_collision(self, petstore_doc) -> None:
        with pytest.raises(ArtifactCollisionError, match="'count.txt'"):
            VisitorPipeline([SchemaCounter(), SchemaCounter()]).run(petstore_doc)

    def test_reserved_artifact(self, petstore_doc) -> None:
        with pytest.raises(ArtifactCollisionError):
            VisitorPipeline([SchemaCounter("bindings")]).run(petstore_doc, reserved=("bindings",))

    def test_collector_returns_copy(self) -> None:
        collector = ArtifactCollector()
        collector.add("a", "text")
        collector.artifacts["b"] = "other"
        assert list(collector.artifacts) == ["a"]

    def test_name_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Hook()  # type: ignore[abstract]
