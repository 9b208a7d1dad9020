import math

import pytest

from halm_webhook_receiver.webhook import serialization


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1.0, "1"),
        (-0.0, "0"),
        (100.0, "100"),
        (123.456, "123.456"),
        (0.1, "0.1"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1.5e-10, "1.5e-10"),
        (1e16, "10000000000000000"),
        (1e21, "1e+21"),
        (1.2345e25, "1.2345e+25"),
        (math.inf, "null"),
        (-math.inf, "null"),
        (math.nan, "null"),
        (2**53, "9007199254740992"),
        (2**53 + 1, "9007199254740992"),
        (12345678901234567890, "12345678901234567000"),
        (10**400, "null"),
        (-3, "-3"),
        (-2.5, "-2.5"),
    ],
)
def test_numbers_follow_sender_formatting(value, expected):
    assert serialization.dumps(value) == expected


def test_containers_and_scalars():
    body = {"s": "é\n\"", "t": True, "f": False, "n": None, "l": [1, 2.0, {"x": []}]}
    assert serialization.dumps(body) == '{"s":"é\\n\\"","t":true,"f":false,"n":null,"l":[1,2,{"x":[]}]}'


def test_integer_like_keys_come_first_in_ascending_order():
    body = {"b": 1, "10": 2, "2": 3, "a": 4, "01": 5, "-1": 6}
    assert serialization.dumps(body) == '{"2":3,"10":2,"b":1,"a":4,"01":5,"-1":6}'


def test_loads_parses_regular_json():
    assert serialization.loads(b'{"a":1.0,"b":[null]}') == {"a": 1.0, "b": [None]}


@pytest.mark.parametrize("raw", [b'{"a":NaN}', b'{"a":Infinity}', b"[-Infinity]"])
def test_loads_rejects_non_standard_constants(raw):
    with pytest.raises(ValueError):
        serialization.loads(raw)


def test_unsupported_type_raises():
    with pytest.raises(TypeError):
        serialization.dumps({"a": object()})
