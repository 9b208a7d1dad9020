"""JSON text in the exact form HALM senders sign.

Senders sign ``JSON.stringify`` of the body, so numbers follow the
ECMAScript ``Number::toString`` rules and integer-like object keys come
first in ascending order.  ``json.dumps`` differs on both counts
(``1.0``, ``1e-07``, ``NaN``), so containers and numbers are written
here and only strings are delegated to :mod:`json`.
"""

from __future__ import annotations

import decimal
import json
import math
from typing import Any

# Integers above this are not exactly representable by the sender.
_MAX_SAFE_INTEGER = 2**53
_MAX_ARRAY_INDEX = 2**32 - 2


def reject_constant(name: str) -> Any:
    """``parse_constant`` hook: ``NaN`` and ``Infinity`` are not JSON."""
    raise ValueError(f"Invalid JSON constant {name}")


def loads(raw: bytes | str) -> Any:
    """Parse strict JSON, refusing the ``NaN``/``Infinity`` extensions."""
    return json.loads(raw, parse_constant=reject_constant)


def dumps(value: Any) -> str:
    """Compact JSON text of *value* as ``JSON.stringify`` writes it."""
    if value is None or value is True or value is False:
        return json.dumps(value)
    if isinstance(value, int):
        if abs(value) > _MAX_SAFE_INTEGER:
            return _number(_to_float(value))
        return str(value)
    if isinstance(value, float):
        return _number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(dumps(item) for item in value) + "]"
    if isinstance(value, dict):
        members = (
            json.dumps(str(key), ensure_ascii=False) + ":" + dumps(value[key])
            for key in _property_order(value)
        )
        return "{" + ",".join(members) + "}"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _number(value: float) -> str:
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = decimal.Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + text


def _is_array_index(key: Any) -> bool:
    if not isinstance(key, str) or not key.isdigit() or not key.isascii():
        return False
    if len(key) > 1 and key[0] == "0":
        return False
    return int(key) <= _MAX_ARRAY_INDEX


def _property_order(obj: dict) -> list:
    indices = sorted((key for key in obj if _is_array_index(key)), key=int)
    return indices + [key for key in obj if not _is_array_index(key)]
