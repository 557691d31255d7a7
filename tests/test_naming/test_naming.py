"""Tests for swagg.naming."""

from __future__ import annotations

import keyword

import pytest

from swagg.models import HTTPMethod
from swagg.naming import (
    PLACEHOLDER_FIELD,
    PLACEHOLDER_MODULE,
    PLACEHOLDER_TYPE,
    PLACEHOLDER_VARIANT,
    STATUS_LABELS,
    is_blank,
    needs_rename,
    operation_name,
    split_words,
    status_label,
    to_field_name,
    to_function_name,
    to_module_name,
    to_type_name,
    to_variant_name,
)


# ---------------------------------------------------------------------------
# Word splitting
# ---------------------------------------------------------------------------


class TestSplitWords:
    """Test separator, camelCase and acronym boundaries."""

    @pytest.mark.parametrize(
        "wire_name,expected",
        [
            ("petId", ["pet", "Id"]),
            ("session_user", ["session", "user"]),
            ("HTTPServer", ["HTTP", "Server"]),
            ("in-progress", ["in", "progress"]),
            ("/pets/{petId}", ["pets", "pet", "Id"]),
            ("a.b c", ["a", "b", "c"]),
        ],
    )
    def test_split(self, wire_name: str, expected: list[str]) -> None:
        assert split_words(wire_name) == expected

    def test_blank(self) -> None:
        assert is_blank("--/--")
        assert is_blank("")
        assert not is_blank("_x")


# ---------------------------------------------------------------------------
# Case conversions
# ---------------------------------------------------------------------------


class TestToTypeName:
    """Test PascalCase conversion."""

    def test_snake(self) -> None:
        assert to_type_name("session_user") == "SessionUser"

    def test_acronym(self) -> None:
        assert to_type_name("HTTPServer") == "HttpServer"

    def test_leading_digit(self) -> None:
        assert to_type_name("3d-model") == "T3dModel"

    def test_placeholder(self) -> None:
        assert to_type_name("***") == PLACEHOLDER_TYPE

    def test_idempotent_on_pascal(self) -> None:
        assert to_type_name("ListPetsResponseOk") == "ListPetsResponseOk"


class TestToFieldName:
    """Test snake_case conversion for model fields."""

    def test_camel(self) -> None:
        assert to_field_name("firstName") == "first_name"

    def test_keyword(self) -> None:
        assert to_field_name("class") == "class_"

    def test_model_attribute(self) -> None:
        assert to_field_name("model_dump") == "model_dump_"
        assert to_field_name("copy") == "copy_"

    @pytest.mark.parametrize("wire_name", ["str", "int", "float", "bool", "bytes"])
    def test_builtin_type(self, wire_name: str) -> None:
        assert to_field_name(wire_name) == f"{wire_name}_"

    def test_imported_module_names_kept(self) -> None:
        assert to_field_name("datetime") == "datetime"
        assert to_field_name("uuid") == "uuid"

    def test_leading_digit(self) -> None:
        assert to_field_name("2fa") == "field_2fa"

    def test_placeholder(self) -> None:
        assert to_field_name("") == PLACEHOLDER_FIELD

    @pytest.mark.parametrize("wire_name", ["for", "123", "x-rate-limit", "ünïcode", "a b"])
    def test_always_identifier(self, wire_name: str) -> None:
        result = to_field_name(wire_name)
        assert result.isidentifier()
        assert not keyword.iskeyword(result)


class TestOtherConversions:
    """Test enum member, function and module conversions."""

    def test_variant(self) -> None:
        assert to_variant_name("in-progress") == "IN_PROGRESS"

    def test_variant_leading_digit(self) -> None:
        assert to_variant_name("1") == "VALUE_1"

    def test_variant_placeholder(self) -> None:
        assert to_variant_name("") == PLACEHOLDER_VARIANT

    def test_function(self) -> None:
        assert to_function_name("listPets") == "list_pets"

    def test_function_keyword(self) -> None:
        assert to_function_name("import") == "import_"

    def test_module_from_path(self) -> None:
        assert to_module_name("/pets/{petId}") == "pets_pet_id"

    def test_module_root(self) -> None:
        assert to_module_name("/") == PLACEHOLDER_MODULE

    def test_module_leading_digit(self) -> None:
        assert to_module_name("/2024/reports") == "path_2024_reports"

    def test_needs_rename(self) -> None:
        assert needs_rename("firstName", "first_name")
        assert not needs_rename("name", "name")


# ---------------------------------------------------------------------------
# Operations and statuses
# ---------------------------------------------------------------------------


class TestOperationName:
    """Test operationId preference and the method/path fallback."""

    def test_operation_id_wins(self) -> None:
        assert operation_name(HTTPMethod.GET, "/pets", "listPets") == "listPets"

    def test_fallback(self) -> None:
        assert operation_name(HTTPMethod.GET, "/pets/{petId}") == "get_pets_by_petId"

    def test_root_path(self) -> None:
        assert operation_name(HTTPMethod.POST, "/") == "post"


class TestStatusLabel:
    """Test variant labels for response statuses."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("200", "Ok"),
            ("201", "Created"),
            ("204", "NoContent"),
            ("404", "NotFound"),
            ("default", "Default"),
            ("413", "RequestEntityTooLarge"),
            ("422", "UnprocessableEntity"),
            ("505", "HttpVersionNotSupported"),
            ("2XX", "Status2XX"),
            ("299", "Status299"),
        ],
    )
    def test_label(self, status: str, expected: str) -> None:
        assert status_label(status) == expected

    def test_override(self) -> None:
        assert status_label("200", "listed") == "Listed"

    def test_labels_are_pascal_case(self) -> None:
        for code, label in STATUS_LABELS.items():
            assert label == to_type_name(label), code
