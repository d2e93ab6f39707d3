import pytest

from subscribe_board.core.config._get_value import (
    Miss_key_exception,
    get_optional,
    get_value_from_dict,
    parse_bool,
    parse_flag,
)


def test_key_not_exist():
    config = {"a": 1, "b": 2}

    with pytest.raises(Miss_key_exception):
        get_value_from_dict(config, "c")

def test_key_exist():
    config = {"a": 1, "b": 2}

    assert get_value_from_dict(config, "a") == 1

@pytest.mark.parametrize(
    "config, expected",
    [
        ({}, "fallback"),
        ({"K": None}, "fallback"),
        ({"K": "   "}, "fallback"),
        ({"K": " value "}, "value"),
    ],
)
def test_get_optional(config, expected):
    assert get_optional(config, "K", "fallback") == expected

@pytest.mark.parametrize(
    "value, expected",
    [
        ("true", True),
        (" YES ", True),
        ("1", True),
        ("on", True),
        ("false", False),
        ("0", False),
        ("Off", False),
        ("n", False),
    ],
)
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected

def test_parse_bool_invalid():
    with pytest.raises(ValueError):
        parse_bool("maybe")

def test_parse_flag_default_when_unset():
    assert parse_flag({}, "AUTO_PIN", False) is False
    assert parse_flag({"AUTO_PIN": ""}, "AUTO_PIN", True) is True

def test_parse_flag_explicit_value():
    assert parse_flag({"AUTO_PIN": "true"}, "AUTO_PIN", False) is True
    assert parse_flag({"ADOPT_PINNED": "0"}, "ADOPT_PINNED", True) is False
