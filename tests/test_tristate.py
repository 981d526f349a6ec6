from __future__ import annotations

import pytest

from mwaa_cli.tristate import NULL, UNSET, Value, from_json_key, get, has_value, is_null, is_set, map_value, of, put_json_key


def test_absent_markers_are_falsy_and_distinct():
    assert not UNSET
    assert not NULL
    assert UNSET is not NULL
    assert repr(UNSET) == "UNSET"


def test_of_maps_none_to_null():
    assert of(None) is NULL
    assert of(3) == Value(3)
    assert of(UNSET) is UNSET
    assert of(Value("x")) == Value("x")


def test_predicates():
    assert not is_set(UNSET)
    assert is_set(NULL)
    assert is_null(NULL)
    assert not has_value(NULL)
    assert has_value(Value(False))


def test_get_and_map_value():
    assert get(Value(0), 5) == 0
    assert get(UNSET, 5) == 5
    assert get(NULL) is None
    assert map_value(Value(2), lambda v: v * 2) == Value(4)
    assert map_value(NULL, lambda v: v * 2) is NULL


def test_from_json_key_distinguishes_missing_and_null():
    obj = {"a": None, "b": "1"}
    assert from_json_key(obj, "missing") is UNSET
    assert from_json_key(obj, "a") is NULL
    assert from_json_key(obj, "b", int) == Value(1)


def test_put_json_key_serialization():
    out: dict[str, object] = {}
    put_json_key(out, "unset", UNSET)
    put_json_key(out, "null", NULL)
    put_json_key(out, "value", Value(7), str)
    assert out == {"null": None, "value": "7"}


def test_put_json_key_rejects_plain_values():
    with pytest.raises(TypeError):
        put_json_key({}, "raw", "not wrapped")
