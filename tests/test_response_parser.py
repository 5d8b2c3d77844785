from types import SimpleNamespace

import pytest

from services.extraction.response_parser import ParseError, extract_text, extract_usage, parse_record


def test_parses_object_surrounded_by_commentary():
    text = 'Here is what I found:\n{"Chemical Name": "Ethanol", "CAS Number": "64-17-5"}\nLet me know!'
    assert parse_record(text) == {"Chemical Name": "Ethanol", "CAS Number": "64-17-5"}


def test_values_are_coerced_to_strings_and_order_is_kept():
    text = '{"b": 1, "a": 2.5, "flag": true, "missing": null, "tags": ["x", "y"], "nested": {"k": "v"}}'
    result = parse_record(text)
    assert list(result) == ["b", "a", "flag", "missing", "tags", "nested"]
    assert result == {
        "b": "1",
        "a": "2.5",
        "flag": "true",
        "missing": "",
        "tags": '["x", "y"]',
        "nested": '{"k": "v"}',
    }


def test_nested_braces_inside_object_are_fine():
    result = parse_record('```json\n{"Name": "X", "Hazards": {"GHS": "H225"}}\n```')
    assert result["Hazards"] == '{"GHS": "H225"}'


@pytest.mark.parametrize("text", ["", "no json here", "only { opening", "only closing }", "} reversed {"])
def test_missing_brace_pair_raises_parse_error(text):
    with pytest.raises(ParseError):
        parse_record(text)


def test_trailing_unrelated_object_corrupts_the_span():
    with pytest.raises(ParseError):
        parse_record('{"Name": "A"} and also {"Other": "B"}')


def test_invalid_json_raises_parse_error():
    with pytest.raises(ParseError):
        parse_record("{Name: 'single quotes'}")


def test_non_object_json_raises_parse_error():
    # The span between the braces of an array of objects is not itself valid JSON.
    with pytest.raises(ParseError):
        parse_record('[{"a": 1}, {"b": 2}]')


def test_parse_error_is_a_value_error():
    assert issubclass(ParseError, ValueError)


def test_extract_text_joins_output_text_blocks():
    response = SimpleNamespace(
        output=[
            SimpleNamespace(type="reasoning", content=None),
            SimpleNamespace(
                type="message",
                content=[
                    SimpleNamespace(type="output_text", text='{"a":'),
                    SimpleNamespace(type="output_text", text='"b"}'),
                ],
            ),
        ]
    )
    assert extract_text(response) == '{"a":\n"b"}'


def test_extract_text_falls_back_to_output_text_and_handles_dicts():
    assert extract_text(SimpleNamespace(output=[], output_text="plain")) == "plain"
    payload = {"output": [{"type": "message", "content": [{"type": "output_text", "text": "hi"}]}]}
    assert extract_text(payload) == "hi"


def test_extract_usage_reads_token_counts():
    response = SimpleNamespace(usage=SimpleNamespace(input_tokens=12, output_tokens=34))
    assert extract_usage(response) == {"input_tokens": 12, "output_tokens": 34}
    assert extract_usage(SimpleNamespace()) == {"input_tokens": None, "output_tokens": None}
