from deckbuddy.enums import StreamState
from deckbuddy.jsonvalues import (
    INT_MAX,
    NullableValue,
    convert_bool,
    convert_enum,
    convert_int,
    convert_str,
    convert_uint,
    get_json_value,
    get_nullable_json_value,
)


def test_convert_str():
    assert convert_str("abc") == "abc"
    assert convert_str(1) is None


def test_convert_bool():
    assert convert_bool(True) is True
    assert convert_bool(1) is None


def test_convert_int_accepts_numbers_in_range():
    assert convert_int(42) == 42
    assert convert_int(3.0) == 3
    assert convert_int(5, 0, 4) is None
    assert convert_int(-3, -3, 3) == -3


def test_convert_int_rejects_non_numbers():
    assert convert_int(True) is None
    assert convert_int("5") is None


def test_convert_int_fraction_reads_as_zero():
    assert convert_int(3.5) == 0
    assert convert_int(3.5, 1, 10) is None


def test_convert_uint():
    assert convert_uint(7) == 7
    assert convert_uint(-1) is None
    assert convert_uint(7, 0, INT_MAX + 1) is None
    assert convert_uint(INT_MAX) == INT_MAX


def test_convert_enum():
    assert convert_enum("Streaming", StreamState) is StreamState.STREAMING
    assert convert_enum("nope", StreamState) is None
    assert convert_enum(1, StreamState) is None


def test_get_json_value():
    obj = {"a": "x", "p": 10}
    assert get_json_value(obj, "a", convert_str) == "x"
    assert get_json_value(obj, "missing", convert_str) is None
    assert get_json_value(obj, "p", convert_int, 0, 5) is None
    assert get_json_value(obj, "p", convert_int, 0, 10) == 10


def test_get_nullable_json_value():
    obj = {"n": None, "b": True, "s": "text"}
    assert get_nullable_json_value(obj, "n", convert_bool) == NullableValue(None)
    assert get_nullable_json_value(obj, "b", convert_bool) == NullableValue(True)
    assert get_nullable_json_value(obj, "s", convert_bool) is None
    assert get_nullable_json_value(obj, "missing", convert_bool) is None