"""Argument Validation — fail-fast checks that run before any timer or socket.

Invariants:
    - Every check raises InvalidArgumentError, never returns a falsy sentinel
    - Any parseable JSON document counts as a valid body (objects, arrays, primitives)
"""

import json
from typing import Any

import httpx

from mediaserve_common.core.errors import InvalidArgumentError


def is_json(value: Any) -> bool:
    if not isinstance(value, (str, bytes, bytearray)):
        return False
    try:
        json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        return False
    return True


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def require_method(method: Any) -> str:
    if not isinstance(method, str):
        raise InvalidArgumentError("Invalid parameter: expected string", "method")
    return method


def require_target(target: Any) -> str:
    """Reject targets httpx cannot parse as a URL."""
    if not isinstance(target, str):
        raise InvalidArgumentError("Invalid parameter: expected URL string", "target")
    try:
        httpx.URL(target)
    except httpx.InvalidURL as e:
        raise InvalidArgumentError(f"Invalid parameter: malformed URL ({e})", "target") from e
    return target


def encode_body(body: Any) -> bytes | None:
    """Return the request body as JSON bytes, or raise on malformed input.

    Strings and bytes must already be JSON documents; anything else is
    serialised as-is.
    """
    if body is None:
        return None
    if isinstance(body, (str, bytes, bytearray)):
        if not is_json(body):
            raise InvalidArgumentError("Invalid parameter: expected JSON body", "body")
        return body.encode("utf-8") if isinstance(body, str) else bytes(body)
    try:
        return json.dumps(body, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(
            f"Invalid parameter: body is not serialisable ({e})", "body",
        ) from e


def validate_pattern(value: Any, pattern: Any) -> bool:
    """Check value against an empty template; dict keys recurse, scalars match by type."""
    if _matches(value, pattern):
        return True
    raise InvalidArgumentError("Value does not match pattern", "value")


def _matches(value: Any, pattern: Any) -> bool:
    if isinstance(pattern, dict) and pattern and isinstance(value, dict):
        return all(
            key in value and _matches(value[key], sub)
            for key, sub in pattern.items()
        )
    if isinstance(pattern, (dict, list)):
        return isinstance(value, type(pattern))
    return type(value) is type(pattern)
