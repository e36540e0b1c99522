"""Tests for c_types: Puffs type to C declarator mapping."""

from __future__ import annotations

import pytest

from puffsgen.c_types import MAX_POINTERS, CType, declare_field, map_type, primitive_name
from puffsgen.errors import TOO_MANY_POINTERS, UNSUPPORTED_TYPE, GenerationError
from puffsgen.types import PointerType, SliceType, TableType, type_string


class TestPrimitives:
    @pytest.mark.parametrize("name,c_name", [
        ("i8", "int8_t"),
        ("i64", "int64_t"),
        ("u8", "uint8_t"),
        ("u32", "uint32_t"),
        ("usize", "size_t"),
        ("bool", "bool"),
        ("buf1", "puffs_base_buf1"),
        ("buf2", "puffs_base_buf2"),
    ])
    def test_primitive(self, b, name, c_name):
        assert primitive_name(b.t(name)) == c_name
        assert declare_field(b.t(name), "f_x", b.ids) == f"{c_name} f_x"

    def test_non_primitive(self, b):
        assert primitive_name(b.t("decoder")) is None
        assert primitive_name(b.ptr("u8")) is None


class TestDeclarators:
    def test_pointer(self, b):
        assert declare_field(b.ptr("u8"), "a_p", b.ids) == "uint8_t *a_p"

    def test_pointer_to_pointer(self, b):
        assert declare_field(b.ptr(b.ptr("u8")), "f_pp", b.ids) == "uint8_t **f_pp"

    def test_array(self, b):
        assert declare_field(b.array(4, "u8"), "f_buf", b.ids) == "uint8_t f_buf[4]"

    def test_array_of_arrays(self, b):
        ty = b.array(2, b.array(3, "u8"))
        assert declare_field(ty, "f_m", b.ids) == "uint8_t f_m[2][3]"

    def test_array_of_pointers(self, b):
        ty = b.array(4, b.ptr("u16"))
        assert declare_field(ty, "f_ps", b.ids) == "uint16_t *f_ps[4]"

    def test_ctype_parts(self, b):
        ct = map_type(b.ptr(b.array(8, "u32")), b.ids)
        assert ct == CType("uint32_t", 1, (8,))
        assert ct.is_array


class TestErrors:
    def test_max_pointers_is_accepted(self, b):
        ty = b.t("u8")
        for _ in range(MAX_POINTERS):
            ty = PointerType(ty)
        assert map_type(ty, b.ids).pointers == MAX_POINTERS

    def test_too_many_pointers(self, b):
        ty = b.t("u8")
        for _ in range(MAX_POINTERS + 1):
            ty = PointerType(ty)
        with pytest.raises(GenerationError) as exc:
            map_type(ty, b.ids)
        assert exc.value.code == TOO_MANY_POINTERS
        assert "too many ptr's" in str(exc.value)

    def test_struct_type_unsupported(self, b):
        with pytest.raises(GenerationError) as exc:
            map_type(b.t("decoder"), b.ids)
        assert exc.value.code == UNSUPPORTED_TYPE
        assert "cannot convert Puffs type 'decoder' to C" in str(exc.value)

    def test_slice_unsupported(self, b):
        with pytest.raises(GenerationError) as exc:
            map_type(SliceType(b.t("u8")), b.ids)
        assert exc.value.code == UNSUPPORTED_TYPE

    def test_error_names_the_whole_type(self, b):
        with pytest.raises(GenerationError) as exc:
            map_type(b.ptr(b.array(4, "f32")), b.ids)
        assert "'ptr [4] f32'" in str(exc.value)


class TestTypeString:
    def test_type_string(self, b):
        assert type_string(b.ptr(b.array(4, "u8")), b.ids) == "ptr [4] u8"
        assert type_string(SliceType(b.t("u8")), b.ids) == "[] u8"
        assert type_string(TableType(b.t("u8")), b.ids) == "table u8"
