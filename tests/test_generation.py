import pytest

from shatter_api.errors import UpstreamError
from shatter_api.llm.client import LLMGenerationParams
from shatter_api.services.generation import (
    FieldRange,
    coerce_number,
    extract_first_json_object,
    generate_with_fallback,
    sanitize_fields,
)

from conftest import FakeLLMClient

RULES = {
    "damage": FieldRange(default=20, minimum=15, maximum=100),
    "price": FieldRange(default=0.5, minimum=0.5, decimals=2),
}


def test_extract_first_json_object_plain():
    assert extract_first_json_object('{"a": 1}') == {"a": 1}


def test_extract_first_json_object_with_preamble_and_suffix():
    text = 'Sure, here you go:\n\n{"a": 1, "b": {"c": 2}}\n\nThanks!'
    assert extract_first_json_object(text) == {"a": 1, "b": {"c": 2}}


def test_extract_first_json_object_ignores_braces_in_strings():
    text = 'prefix {"a": "value with } brace", "b": {"c": "{nested} ok"}} suffix'
    assert extract_first_json_object(text) == {"a": "value with } brace", "b": {"c": "{nested} ok"}}


@pytest.mark.parametrize("text", ["no json here", "", "{\"a\": 1", "   "])
def test_extract_first_json_object_raises_when_missing(text):
    with pytest.raises(ValueError):
        extract_first_json_object(text)


def test_coerce_number_rejects_non_numbers():
    assert coerce_number(True) is None
    assert coerce_number("abc") is None
    assert coerce_number(float("nan")) is None
    assert coerce_number(" 42 ") == 42.0


def test_sanitize_fields_clamps_extremes():
    assert sanitize_fields({"damage": 9999}, RULES)["damage"] == 100
    assert sanitize_fields({"damage": -5}, RULES)["damage"] == 15


def test_sanitize_fields_fills_defaults_and_keeps_other_keys():
    sanitized = sanitize_fields({"name": "Blade", "damage": None}, RULES)
    assert sanitized == {"name": "Blade", "damage": 20, "price": 0.5}


def test_sanitize_fields_rounds_decimals():
    sanitized = sanitize_fields({"damage": "42.6", "price": 3.14159}, RULES)
    assert sanitized["damage"] == 43
    assert sanitized["price"] == 3.14


def test_generate_with_fallback_uses_parsed_reply():
    client = FakeLLMClient(reply='Here it is: {"damage": 500, "price": 2}')

    result = generate_with_fallback(
        client=client,
        prompt="prompt",
        params=LLMGenerationParams(max_tokens=50),
        parse=lambda raw: raw,
        fallback=lambda: pytest.fail("fallback should not run"),
        rules=RULES,
        label="test",
    )

    assert result.used_fallback is False
    assert result.artifact == {"damage": 100, "price": 2.0}
    assert client.calls[0][1].max_tokens == 50


def test_generate_with_fallback_recovers_from_unparseable_reply():
    client = FakeLLMClient(reply="I cannot help with that.")

    result = generate_with_fallback(
        client=client,
        prompt="prompt",
        params=LLMGenerationParams(max_tokens=50),
        parse=lambda raw: raw,
        fallback=lambda: {"damage": 1, "price": 0.1},
        rules=RULES,
        label="test",
    )

    assert result.used_fallback is True
    assert result.artifact == {"damage": 15, "price": 0.5}


def test_generate_with_fallback_recovers_when_parse_rejects_object():
    def parse(raw):
        raise ValueError("missing field")

    result = generate_with_fallback(
        client=FakeLLMClient(reply='{"unexpected": true}'),
        prompt="prompt",
        params=LLMGenerationParams(max_tokens=50),
        parse=parse,
        fallback=lambda: {"damage": 30},
        rules=RULES,
        label="test",
    )

    assert result.used_fallback is True
    assert result.artifact["damage"] == 30


def test_generate_with_fallback_propagates_upstream_errors(upstream_error):
    with pytest.raises(UpstreamError):
        generate_with_fallback(
            client=FakeLLMClient(error=upstream_error),
            prompt="prompt",
            params=LLMGenerationParams(max_tokens=50),
            parse=lambda raw: raw,
            fallback=lambda: {},
            rules=RULES,
            label="test",
        )


def test_extract_first_json_object_skips_stray_braces_in_prose():
    text = 'Use {curly} braces like this: {"a": [1, 2]} done'
    assert extract_first_json_object(text) == {"a": [1, 2]}


def test_coerce_number_rejects_integers_beyond_float_range():
    assert coerce_number(10**400) is None


def test_sanitize_fields_defaults_oversized_integers():
    assert sanitize_fields({"damage": 10**400}, RULES)["damage"] == 20
