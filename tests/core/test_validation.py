"""Tests for argument validation helpers."""

import pytest

from mediaserve_common.core.errors import InvalidArgumentError
from mediaserve_common.core.validation import (
    encode_body, is_json, require_method, require_target, validate_pattern,
)


@pytest.mark.parametrize("text", ['{"a": 1}', "[1, 2]", "3", '"s"', "null", b'{"a": 1}'])
def test_any_json_document_is_valid(text):
    assert is_json(text)


@pytest.mark.parametrize("text", ["{invalid json", "", "{'a': 1}", "NaN", "[1, Infinity]"])
def test_malformed_json_is_invalid(text):
    assert not is_json(text)


def test_non_text_is_not_json():
    assert not is_json({"a": 1})


def test_require_method_accepts_strings():
    assert require_method("POST") == "POST"


def test_require_method_rejects_non_strings():
    with pytest.raises(InvalidArgumentError) as exc:
        require_method(None)
    assert exc.value.argument == "method"
    assert exc.value.http_status == 400


def test_encode_body_none_is_empty():
    assert encode_body(None) is None


def test_encode_body_keeps_json_text():
    assert encode_body('{"a": 1}') == b'{"a": 1}'


def test_encode_body_serialises_objects():
    assert encode_body({"a": [1, 2]}) == b'{"a": [1, 2]}'


def test_encode_body_rejects_invalid_json_text():
    with pytest.raises(InvalidArgumentError) as exc:
        encode_body("{invalid json")
    assert exc.value.argument == "body"


def test_encode_body_rejects_unserialisable_values():
    with pytest.raises(InvalidArgumentError):
        encode_body({"when": object()})


def test_encode_body_rejects_non_finite_floats():
    with pytest.raises(InvalidArgumentError) as exc:
        encode_body({"ratio": float("nan")})
    assert exc.value.argument == "body"


def test_require_target_accepts_urls():
    assert require_target("http://catalog.test/items?page=2") == "http://catalog.test/items?page=2"


@pytest.mark.parametrize("target", [None, 42, "http://catalog.test/\x00"])
def test_require_target_rejects_malformed(target):
    with pytest.raises(InvalidArgumentError) as exc:
        require_target(target)
    assert exc.value.argument == "target"
    assert exc.value.http_status == 400


def test_validate_pattern_matches_nested_template():
    value = {"user": {"name": "ana", "age": 31}, "active": True, "extra": 1}
    pattern = {"user": {"name": "", "age": 0}, "active": False}
    assert validate_pattern(value, pattern) is True


def test_validate_pattern_empty_template_matches_any_dict():
    assert validate_pattern({"a": 1}, {}) is True


def test_validate_pattern_rejects_missing_key():
    with pytest.raises(InvalidArgumentError, match="Value does not match pattern"):
        validate_pattern({"user": {}}, {"user": {"name": ""}})


def test_validate_pattern_rejects_wrong_type():
    with pytest.raises(InvalidArgumentError):
        validate_pattern({"age": "31"}, {"age": 0})
