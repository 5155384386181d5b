"""Tests for provider-reply parsing helpers."""
from text_utils import (
    Fallback,
    Parsed,
    parse_embedded_object,
    parse_id_array,
    parse_strict_object,
    parse_string_list,
    query_keywords,
    strip_list_prefix,
    title_keywords,
    truncate,
)


def test_string_list_parses_json_array():
    result = parse_string_list('["python tutorial", "python basics"]')
    assert result == Parsed(["python tutorial", "python basics"])


def test_string_list_tolerates_code_fence():
    result = parse_string_list('```json\n["a", "b"]\n```')
    assert result == Parsed(["a", "b"])


def test_string_list_falls_back_to_lines():
    text = "1. Learn python\n- python examples\n• \"best practices\"\n\n2) closures"
    result = parse_string_list(text)
    assert isinstance(result, Fallback)
    assert result.value == ["Learn python", "python examples", "best practices", "closures"]


def test_string_list_line_fallback_drops_long_items():
    text = "short one\n" + "x" * 120
    result = parse_string_list(text, max_item_length=100)
    assert result == Fallback(["short one"])


def test_json_object_reply_is_not_a_list():
    assert parse_string_list('{"a": 1}') == Fallback([])
    assert parse_string_list('{\n  "a": ["x"],\n  "b": ["y"]\n}') == Fallback([])
    assert parse_string_list('"just a string"') == Fallback([])


def test_json_object_wrapping_one_array_is_unwrapped():
    result = parse_string_list('```json\n{"suggestions": ["a", " b "], "count": 2}\n```')
    assert result == Parsed(["a", "b"])


def test_strip_list_prefix_keeps_inner_hyphens():
    assert strip_list_prefix("- well-known pattern") == "well-known pattern"


def test_id_array_found_inside_prose():
    result = parse_id_array('Here you go: ["3", 7, "12"] hope it helps')
    assert result == Parsed(["3", "7", "12"])


def test_id_array_missing():
    assert parse_id_array("no ids here") == Fallback(None)


def test_strict_object_rejects_prose():
    assert parse_strict_object('Sure! {"clarity": 4}') == Fallback(None)
    assert parse_strict_object('{"clarity": 4}') == Parsed({"clarity": 4})


def test_embedded_object_accepts_prose():
    assert parse_embedded_object('Sure! {"summary": "x"} done') == Parsed({"summary": "x"})


def test_keyword_helpers():
    assert query_keywords("How to use Python in ML") == ["how", "use", "python"]
    assert title_keywords("Why does Python's GIL exist? Python!") == ["does", "python's", "exist", "python"]
    assert truncate("abc", 2) == "ab..."
    assert truncate("ab", 2) == "ab"
