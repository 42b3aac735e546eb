"""Tests for log payload classification and rendering.

Invariants:
    - infer_payload picks exactly one variant per message
    - Exceptions always resolve to ERROR level
"""

from mediaserve_common.core.errors import QueryFailure
from mediaserve_common.core.log_payload import (
    LogLevel, LogPayload, PayloadKind, effective_level, infer_payload, render_payload,
)


def test_plain_string_becomes_one_element_text():
    payload = infer_payload("hello")
    assert payload.kind is PayloadKind.TEXT
    assert payload.values == ("hello",)


def test_number_becomes_text():
    payload = infer_payload(42)
    assert payload.kind is PayloadKind.TEXT
    assert render_payload(payload) == "42"


def test_list_becomes_sequence_joined_by_spaces():
    payload = infer_payload(["abc", "request completed in", 0.25, "seconds"])
    assert payload.kind is PayloadKind.SEQUENCE
    assert render_payload(payload) == "abc request completed in 0.25 seconds"


def test_tuple_becomes_sequence():
    assert infer_payload(("a", "b")).kind is PayloadKind.SEQUENCE


def test_dict_becomes_mapping_rendered_as_json():
    payload = infer_payload({"status": "ok", "count": 2})
    assert payload.kind is PayloadKind.MAPPING
    assert render_payload(payload) == '{"status": "ok", "count": 2}'


def test_exception_becomes_error_payload():
    error = ValueError("disk full")
    payload = infer_payload(error)
    assert payload.kind is PayloadKind.ERROR
    assert payload.error is error
    assert render_payload(payload) == "disk full"


def test_error_without_message_renders_class_name():
    assert render_payload(infer_payload(TimeoutError())) == "TimeoutError"


def test_toolkit_error_renders_its_message():
    failure = QueryFailure("SELECT 1", RuntimeError("gone"))
    assert "gone" in render_payload(infer_payload(failure))


def test_payload_passes_through_unchanged():
    payload = LogPayload.text("x")
    assert infer_payload(payload) is payload


def test_error_payload_forces_error_level():
    payload = infer_payload(RuntimeError("boom"))
    assert effective_level(payload, LogLevel.DEBUG) is LogLevel.ERROR
    assert effective_level(payload, None) is LogLevel.ERROR


def test_level_defaults_to_info():
    payload = infer_payload("x")
    assert effective_level(payload, None) is LogLevel.INFO
    assert effective_level(payload, "verbose") is LogLevel.INFO


def test_level_accepts_strings():
    payload = infer_payload("x")
    assert effective_level(payload, "debug") is LogLevel.DEBUG
    assert effective_level(payload, "ERROR") is LogLevel.ERROR


def test_sequence_renders_none_and_nested_values_as_json():
    payload = infer_payload(["from", None, "URL:", "/a"])
    assert render_payload(payload) == "from null URL: /a"
