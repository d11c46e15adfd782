"""Tests for locating JSON objects inside free-form model output."""

from __future__ import annotations

import json

import pytest

from domain.parsing import first_json_object, first_json_object_span, load_first_json_object


class TestFirstJsonObject:
    def test_ignores_surrounding_prose(self):
        text = 'Sure! Here you go: {"a": 1, "b": [1, 2]} Let me know if you need more.'
        assert json.loads(first_json_object(text)) == {"a": 1, "b": [1, 2]}

    def test_handles_fenced_block(self):
        text = 'Result:\n```json\n{\n  "selected_competencies": []\n}\n```\n'
        assert load_first_json_object(text) == {"selected_competencies": []}

    def test_returns_outer_object_when_nested(self):
        text = 'x {"outer": {"inner": {"deep": true}}} y'
        assert load_first_json_object(text) == {"outer": {"inner": {"deep": True}}}

    def test_braces_inside_strings_do_not_unbalance(self):
        text = 'prefix {"template": "use {name} here }", "n": 2} suffix'
        assert load_first_json_object(text) == {"template": "use {name} here }", "n": 2}

    def test_skips_non_json_brace_spans(self):
        text = 'Use {braces} carefully, then {"ok": true}'
        assert first_json_object(text) == '{"ok": true}'

    def test_containing_filter(self):
        text = '{"note": "first"} and later {"questions": []}'
        assert first_json_object(text, containing='"questions"') == '{"questions": []}'
        assert first_json_object(text) == '{"note": "first"}'

    def test_span_points_into_text(self):
        text = 'abc {"k": "v"} def'
        start, end = first_json_object_span(text)
        assert text[start:end] == '{"k": "v"}'

    @pytest.mark.parametrize("text", ["", "no json here", "{unterminated", '["a", "list"]', "{'single': 1}"])
    def test_returns_none_without_a_json_object(self, text):
        assert first_json_object(text) is None
        assert load_first_json_object(text) is None

    def test_nesting_too_deep_to_decode_is_skipped(self):
        text = 'Here: {"questions": ' + "[" * 100_000 + "]" * 100_000 + "}"
        assert first_json_object_span(text) is None
        assert load_first_json_object(text, containing='"questions"') is None

    def test_unbalanced_braces_are_scanned_in_one_pass(self):
        assert first_json_object("{" * 200_000) is None
        assert first_json_object("{" * 200_000 + '{"ok": true}') == '{"ok": true}'

    def test_deeply_nested_braces_that_are_not_json(self):
        assert first_json_object("{" * 50_000 + "}" * 50_000) is None

    def test_unterminated_quote_in_prose_ends_at_line_break(self):
        text = 'He wrote "see {" and stopped\n{"ok": true}'
        assert load_first_json_object(text) == {"ok": True}
