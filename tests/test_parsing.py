import pytest

from jarloc.ai.exceptions import MalformedInputError, MalformedResponseError
from jarloc.translation.parsing import (
    match_json_object,
    parse_json_response,
    parse_lang_file,
    strip_markdown_fences,
)


def test_plain_json():
    assert parse_json_response('{"a": "Hola"}') == {"a": "Hola"}


def test_markdown_fenced_json():
    text = '```json\n{"a": "Hola"}\n```'
    assert strip_markdown_fences(text) == '{"a": "Hola"}'
    assert parse_json_response(text) == {"a": "Hola"}


def test_json5_trailing_comma_and_single_quotes():
    assert parse_json_response("{'a': 'Hola',}") == {"a": "Hola"}


def test_missing_final_brace_is_repaired():
    assert parse_json_response('{"a": "Hola", "b": "Mundo"') == {"a": "Hola", "b": "Mundo"}


def test_json_surrounded_by_prose():
    text = 'Here is the translation:\n{"a": "{braces} inside"}\nHope it helps!'
    assert parse_json_response(text) == {"a": "{braces} inside"}


def test_array_response():
    assert parse_json_response('Result: ["uno", "dos"] done') == ["uno", "dos"]


def test_match_json_object_ignores_brackets_in_strings():
    assert match_json_object('x {"a": "}"} y') == '{"a": "}"}'


@pytest.mark.parametrize("text", ["", "   ", "I cannot translate this."])
def test_unparseable_response_raises(text):
    with pytest.raises(MalformedResponseError):
        parse_json_response(text)


def test_parse_lang_file_accepts_json5():
    assert parse_lang_file('{\n  // comment\n  "a": "b",\n}') == {"a": "b"}


def test_parse_lang_file_rejects_garbage():
    with pytest.raises(MalformedInputError) as exc_info:
        parse_lang_file("not json", "assets/x/lang/en_us.json")
    assert exc_info.value.details["path"] == "assets/x/lang/en_us.json"
