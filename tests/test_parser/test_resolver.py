"""Tests for swagg.parser.resolver."""

from __future__ import annotations

import pytest

from swagg.exceptions import (
    CycleDetectedError,
    ExternalReferenceError,
    NotFoundError,
    ResolutionError,
    WrongNamespaceError,
)
from swagg.models import ItemKind, Reference, Schema
from swagg.parser.resolver import (
    MAX_REFERENCE_DEPTH,
    namespace_prefix,
    ref_name,
    resolve,
    resolve_item,
    resolve_named,
)


# ---------------------------------------------------------------------------
# ref_name
# ---------------------------------------------------------------------------


class TestRefName:
    """Test pointer prefix checking and name extraction."""

    def test_strips_prefix(self) -> None:
        assert ref_name("#/components/schemas/Pet", ItemKind.SCHEMAS) == "Pet"

    def test_prefix_per_kind(self) -> None:
        assert namespace_prefix(ItemKind.REQUEST_BODIES) == "#/components/requestBodies/"

    def test_unescapes_json_pointer(self) -> None:
        assert ref_name("#/components/schemas/a~1b~0c", ItemKind.SCHEMAS) == "a/b~c"

    def test_external_reference(self) -> None:
        with pytest.raises(ExternalReferenceError, match="External reference"):
            ref_name("other.yaml#/components/schemas/Pet", ItemKind.SCHEMAS)

    def test_external_is_a_namespace_error(self) -> None:
        with pytest.raises(WrongNamespaceError):
            ref_name("https://example.com/pet.json", ItemKind.SCHEMAS)

    def test_wrong_namespace(self) -> None:
        with pytest.raises(WrongNamespaceError, match="outside the expected namespace"):
            ref_name("#/components/parameters/limit", ItemKind.SCHEMAS)

    def test_nested_pointer_rejected(self) -> None:
        with pytest.raises(WrongNamespaceError):
            ref_name("#/components/schemas/Pet/properties/id", ItemKind.SCHEMAS)

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(WrongNamespaceError):
            ref_name("#/components/schemas/", ItemKind.SCHEMAS)


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    """Test resolution against a document, including alias chains."""

    def test_direct(self, petstore_doc) -> None:
        pet = resolve("#/components/schemas/Pet", ItemKind.SCHEMAS, petstore_doc)
        assert isinstance(pet, Schema)
        assert pet.required == ["id", "name"]

    def test_not_found(self, petstore_doc) -> None:
        with pytest.raises(NotFoundError, match="No component 'Dog'") as exc_info:
            resolve("#/components/schemas/Dog", ItemKind.SCHEMAS, petstore_doc)
        assert exc_info.value.kind == "schemas"
        assert exc_info.value.name == "Dog"

    def test_alias_chain(self, make_doc) -> None:
        doc = make_doc(
            {
                "A": {"$ref": "#/components/schemas/B"},
                "B": {"$ref": "#/components/schemas/C"},
                "C": {"type": "string"},
            }
        )
        name, item = resolve_named("#/components/schemas/A", ItemKind.SCHEMAS, doc)
        assert name == "C"
        assert item.type == "string"

    def test_cycle(self, make_doc) -> None:
        doc = make_doc(
            {
                "A": {"$ref": "#/components/schemas/B"},
                "B": {"$ref": "#/components/schemas/A"},
            }
        )
        with pytest.raises(CycleDetectedError, match="Reference cycle") as exc_info:
            resolve("#/components/schemas/A", ItemKind.SCHEMAS, doc)
        assert exc_info.value.ref == "#/components/schemas/A"
        assert len(exc_info.value.chain) == MAX_REFERENCE_DEPTH + 1

    def test_self_reference_is_a_cycle(self, make_doc) -> None:
        doc = make_doc({"A": {"$ref": "#/components/schemas/A"}})
        with pytest.raises(CycleDetectedError):
            resolve("#/components/schemas/A", ItemKind.SCHEMAS, doc)

    def test_chain_into_missing(self, make_doc) -> None:
        doc = make_doc({"A": {"$ref": "#/components/schemas/Gone"}})
        with pytest.raises(NotFoundError):
            resolve("#/components/schemas/A", ItemKind.SCHEMAS, doc)

    def test_errors_share_a_base(self, petstore_doc) -> None:
        with pytest.raises(ResolutionError):
            resolve("#/components/schemas/Nope", ItemKind.SCHEMAS, petstore_doc)


class TestResolveItem:
    """Test the reference-or-item helper."""

    def test_passes_items_through(self, petstore_doc) -> None:
        schema = Schema(type="string")
        assert resolve_item(schema, ItemKind.SCHEMAS, petstore_doc) is schema

    def test_resolves_references(self, petstore_doc) -> None:
        ref = Reference.model_validate({"$ref": "#/components/responses/ErrorResponse"})
        response = resolve_item(ref, ItemKind.RESPONSES, petstore_doc)
        assert response.description == "Unexpected error"
