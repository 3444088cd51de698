import pytest

from compliance.errors import MalformedResponseError
from compliance.json_utils import parse_json_strict, strip_code_fences


def test_plain_json_object():
    assert parse_json_strict('{"name": "X"}') == {"name": "X"}


def test_fenced_json_block():
    raw = 'Here you go:\n```json\n{"name": "X", "details": []}\n```\nThanks'
    assert parse_json_strict(raw) == {"name": "X", "details": []}


def test_unlabelled_fence():
    assert parse_json_strict('```\n[1, 2]\n```') == [1, 2]


def test_brace_slice_and_trailing_comma_repair():
    raw = 'Result: {"name": "X", "sources": ["https://fda.gov/grn",],} -- end'
    assert parse_json_strict(raw) == {"name": "X", "sources": ["https://fda.gov/grn"]}


def test_array_sliced_before_object():
    raw = 'feed: [{"id": "a"}, {"id": "b"}] done'
    assert parse_json_strict(raw) == [{"id": "a"}, {"id": "b"}]


@pytest.mark.parametrize("raw", ["", "   ", "not json at all", "{broken"])
def test_unparseable_raises(raw):
    with pytest.raises(MalformedResponseError):
        parse_json_strict(raw)


def test_malformed_error_is_value_error():
    with pytest.raises(ValueError):
        parse_json_strict("nope")


def test_strip_code_fences_passthrough():
    assert strip_code_fences("  {}  ") == "{}"


def test_deeply_nested_input_is_malformed():
    with pytest.raises(MalformedResponseError):
        parse_json_strict("[" * 100000 + "]" * 100000)
