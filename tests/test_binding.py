"""Tests for ``querykit.binding``: parameter type resolution and binding."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from querykit.adapters.mssql import MSSQLAdapter, SqlDbType
from querykit.adapters.mysql import MySQLAdapter, MySqlDbType
from querykit.adapters.sqlite import SQLiteAdapter, SQLiteDbType
from querykit.binding import (
    BOOL_FALSE,
    BOOL_TRUE,
    ParameterBinder,
    ParamType,
    TypeValuePair,
    infer_param_type,
    is_expandable,
    make_in_placeholders,
    resolve_param_type,
)
from querykit.errors import ConfigError, UnsupportedParameterTypeError


class TestInferParamType:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, ParamType.BOOL),
            (False, ParamType.BOOL),
            (0, ParamType.INT32),
            (2**31 - 1, ParamType.INT32),
            (-(2**31), ParamType.INT32),
            (2**31, ParamType.INT64),
            (-(2**31) - 1, ParamType.INT64),
            ("text", ParamType.STRING),
            (datetime(2024, 1, 2), ParamType.DATETIME),
            (1.25, ParamType.FLOAT64),
            (Decimal("9.99"), ParamType.DECIMAL),
            (uuid.uuid4(), ParamType.GUID),
            (b"\x00", ParamType.BLOB),
            (bytearray(b"ab"), ParamType.BLOB),
            (memoryview(b"ab"), ParamType.BLOB),
        ],
    )
    def test_inference(self, value, expected):
        assert infer_param_type(value) is expected

    def test_unknown_type_raises(self):
        with pytest.raises(UnsupportedParameterTypeError) as exc_info:
            infer_param_type(object())
        assert exc_info.value.message == "Parameter type object not handled"
        assert exc_info.value.declared is object


class TestResolveParamType:
    def test_param_type_passes_through(self):
        assert resolve_param_type(ParamType.GUID) is ParamType.GUID

    def test_declared_int_is_int64(self):
        assert resolve_param_type(int) is ParamType.INT64

    def test_python_types(self):
        assert resolve_param_type(str) is ParamType.STRING
        assert resolve_param_type(bytes) is ParamType.BLOB
        assert resolve_param_type(uuid.UUID) is ParamType.GUID

    def test_unsupported_declared_type(self):
        with pytest.raises(UnsupportedParameterTypeError) as exc_info:
            resolve_param_type(complex)
        assert isinstance(exc_info.value, ConfigError)
        assert "complex" in str(exc_info.value)


class TestHelpers:
    def test_is_expandable(self):
        assert is_expandable([1, 2])
        assert is_expandable((1,))
        assert is_expandable({1})
        assert is_expandable(frozenset({1}))
        assert not is_expandable(b"abc")
        assert not is_expandable("abc")
        assert not is_expandable(7)

    def test_make_in_placeholders(self):
        assert make_in_placeholders("@", 2, 3) == "@2, @3, @4"
        assert make_in_placeholders(":", 0, 2, ",") == ":0,:1"
        assert make_in_placeholders("@", 0, 0) == ""


class TestParameterBinder:
    def test_names_follow_prefix_and_starting_index(self):
        binder = ParameterBinder(SQLiteAdapter(), prefix=":p", starting_index=1)
        params = binder.bind_all(["a", 2])
        assert [p.name for p in params] == [":p1", ":p2"]

    def test_collections_expand_with_running_index(self):
        binder = ParameterBinder(SQLiteAdapter())
        params = binder.bind_all(["x", [10, 20, 30], 5])
        assert [p.name for p in params] == ["@0", "@1", "@2", "@3", "@4"]
        assert [p.value for p in params] == ["x", 10, 20, 30, 5]

    def test_empty_collection_binds_nothing(self):
        binder = ParameterBinder(SQLiteAdapter())
        params = binder.bind_all([[], "a"])
        assert [(p.name, p.value) for p in params] == [("@0", "a")]

    def test_bytes_are_not_expanded(self):
        binder = ParameterBinder(SQLiteAdapter())
        params = binder.bind_all([b"abc"])
        assert len(params) == 1
        assert params[0].param_type is ParamType.BLOB

    def test_bool_binds_as_one_or_two(self):
        binder = ParameterBinder(SQLiteAdapter())
        true_param, false_param = binder.bind_all([True, False])
        assert true_param.value == BOOL_TRUE == 1
        assert false_param.value == BOOL_FALSE == 2
        assert true_param.type_tag is SQLiteDbType.INT32

    def test_datetime_min_binds_as_null(self):
        binder = ParameterBinder(SQLiteAdapter())
        (param,) = binder.bind_all([datetime.min])
        assert param.is_null
        assert param.param_type is ParamType.DATETIME

    def test_type_value_pair_with_none(self):
        binder = ParameterBinder(SQLiteAdapter())
        (param,) = binder.bind_all([TypeValuePair(str, None)])
        assert param.is_null
        assert param.param_type is ParamType.STRING
        assert param.type_tag is SQLiteDbType.STRING

    def test_type_value_pair_overrides_inference(self):
        binder = ParameterBinder(MSSQLAdapter())
        (param,) = binder.bind_all([TypeValuePair(int, 5)])
        assert param.param_type is ParamType.INT64
        assert param.type_tag is SqlDbType.BIG_INT

    def test_type_value_pairs_inside_collection(self):
        binder = ParameterBinder(SQLiteAdapter())
        params = binder.bind_all([[TypeValuePair(str, None), "b"]])
        assert [p.value for p in params] == [None, "b"]

    def test_bare_none_raises(self):
        binder = ParameterBinder(SQLiteAdapter())
        with pytest.raises(UnsupportedParameterTypeError) as exc_info:
            binder.bind_all(["ok", None])
        assert exc_info.value.context.parameter == "@1"

    def test_unsupported_value_raises(self):
        binder = ParameterBinder(SQLiteAdapter())
        with pytest.raises(UnsupportedParameterTypeError):
            binder.bind_all([{"a": 1}])


class TestBlobTiers:
    def test_mysql_tiers(self):
        binder = ParameterBinder(MySQLAdapter())
        small = binder.bind("@0", bytes, b"x" * 65535)
        medium = binder.bind("@1", bytes, b"x" * 65536)
        boundary = binder.bind("@2", bytes, b"x" * 16277215)
        large = binder.bind("@3", bytes, b"x" * 16277216)
        assert (small.type_tag, small.size) == (MySqlDbType.BLOB, 65535)
        assert (medium.type_tag, medium.size) == (MySqlDbType.MEDIUM_BLOB, 65536)
        assert boundary.type_tag is MySqlDbType.MEDIUM_BLOB
        assert (large.type_tag, large.size) == (MySqlDbType.LONG_BLOB, 16277216)

    def test_sqlite_hint_only_below_limit(self):
        binder = ParameterBinder(SQLiteAdapter())
        small = binder.bind("@0", bytes, b"x" * 7999)
        big = binder.bind("@1", bytes, b"x" * 8000)
        assert (small.type_tag, small.size) == (SQLiteDbType.BINARY, 7999)
        assert (big.type_tag, big.size) == (None, None)

    def test_mssql_always_varbinary(self):
        binder = ParameterBinder(MSSQLAdapter())
        param = binder.bind("@0", bytes, b"x" * 100_000)
        assert (param.type_tag, param.size) == (SqlDbType.VARBINARY, None)

    def test_null_blob_uses_base_tag(self):
        binder = ParameterBinder(MySQLAdapter())
        param = binder.bind("@0", bytes, None)
        assert (param.type_tag, param.size) == (MySqlDbType.BLOB, None)
