"""Tests for JSON extraction from LLM responses."""

import pytest

from testdesign.llm.errors import InvalidLLMOutputError
from testdesign.llm.parser import extract_json_text, parse_llm_json, strip_think_tags


def test_fenced_block_with_language_tag():
    raw = 'Here you go:\n```json\n  {"suite": {"name": "A"}}  \n```\nDone.'
    assert extract_json_text(raw) == '{"suite": {"name": "A"}}'


def test_fenced_block_without_language_tag():
    raw = '```\n{"a": 1}\n```'
    assert extract_json_text(raw) == '{"a": 1}'


@pytest.mark.parametrize("tag", ["JSON", "jsonc", "javascript", "json5", "c++"])
def test_fenced_block_with_other_language_tags(tag):
    raw = f'Result:\n```{tag}\n{{"a": 1}}\n```'
    assert extract_json_text(raw) == '{"a": 1}'
    assert parse_llm_json(raw) == {"a": 1}


def test_first_fence_wins():
    raw = '```json\n{"a": 1}\n```\n```json\n{"b": 2}\n```'
    assert extract_json_text(raw) == '{"a": 1}'


def test_prose_then_bare_object():
    obj = '{"rows": [{"Case": "x {y}"}], "n": "}"}'
    raw = f"Sure! The design is below.\n{obj}\nLet me know if you need more."
    assert extract_json_text(raw) == obj


def test_unbalanced_object_falls_back_to_widest_span():
    raw = 'truncated output {"a": {"b": 1}, "c": ['
    assert extract_json_text(raw) == '{"a": {"b": 1}'


def test_no_json_returns_trimmed_text():
    assert extract_json_text("  not json  ") == "not json"


def test_think_block_is_stripped():
    raw = '<think>maybe {"wrong": true}</think>\n{"right": true}'
    assert parse_llm_json(raw) == {"right": True}


def test_strip_think_tags_without_tags():
    assert strip_think_tags("plain") == ("plain", None)


def test_parse_valid_json():
    assert parse_llm_json('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}


def test_parse_invalid_json_carries_raw_text_and_error():
    with pytest.raises(InvalidLLMOutputError) as exc_info:
        parse_llm_json("not json")
    err = exc_info.value
    assert err.raw_text == "not json"
    assert err.parse_error
    assert err.retryable is True
    assert err.category == "upstream_garbage"


def test_parse_empty_response_fails():
    with pytest.raises(InvalidLLMOutputError):
        parse_llm_json("")
