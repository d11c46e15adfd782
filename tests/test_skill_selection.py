"""Tests for reconciling skill selection replies against the snapshot."""

from __future__ import annotations

import asyncio
import json

import pytest

import domain.services.skill_selection as selection_module
from app.settings import settings
from domain.errors import MalformedSelectionResponse, ServiceFailure
from domain.services.skill_selection import reconcile_selection, select_skills


def _reply(entries, **extra) -> str:
    return json.dumps({"selected_competencies": entries, **extra})


def _snapshot_competency_ids(snapshot):
    return {c.id for cat in snapshot.categories for s in cat.skills for c in s.competencies}


class TestReconcileSelection:
    def test_keeps_only_selected_competencies(self, snapshot):
        text = _reply([{"category_numId": 1, "skill_numId": 3, "competency_numIds": [10]}])
        result = reconcile_selection(text, snapshot)

        assert len(result.categories) == 1
        category = result.categories[0]
        assert (category.id, category.name) == (1, "Programming")
        assert [(s.id, s.name) for s in category.skills] == [(3, "JavaScript")]
        assert [(c.id, c.name) for c in category.skills[0].competencies] == [(10, "ES6+")]
        assert category.skills[0].competencies[0].selected is True

    def test_unresolvable_references_are_dropped(self, snapshot):
        text = _reply([
            {"category_numId": 99, "skill_numId": 3, "competency_numIds": [10]},
            {"category_numId": 1, "skill_numId": 5, "competency_numIds": [13]},
            {"category_numId": 1, "skill_numId": 3, "competency_numIds": [11, 13, 404, None]},
            "not an entry",
        ])
        result = reconcile_selection(text, snapshot)
        assert [c.id for c in result.categories[0].skills[0].competencies] == [11]

    def test_prunes_empty_skills_and_categories(self, snapshot):
        text = _reply([
            {"category_numId": 2, "skill_numId": 5, "competency_numIds": [999]},
            {"category_numId": 1, "skill_numId": 4, "competency_numIds": []},
            {"category_numId": 1, "skill_numId": 3, "competency_numIds": [10]},
        ])
        result = reconcile_selection(text, snapshot)
        assert [c.id for c in result.categories] == [1]
        assert [s.id for s in result.categories[0].skills] == [3]
        for category in result.categories:
            assert category.skills
            for skill in category.skills:
                assert skill.competencies

    def test_merges_entries_for_the_same_skill(self, snapshot):
        text = _reply([
            {"category_numId": 1, "skill_numId": 3, "competency_numIds": [10]},
            {"category_numId": 2, "skill_numId": 5, "competency_numIds": [13]},
            {"category_numId": 1, "skill_numId": 3, "competency_numIds": [11, 10]},
        ])
        result = reconcile_selection(text, snapshot)
        assert [c.id for c in result.categories] == [1, 2]
        programming = result.categories[0]
        assert len(programming.skills) == 1
        assert [c.id for c in programming.skills[0].competencies] == [10, 11]

    def test_never_invents_identifiers(self, snapshot):
        text = _reply([
            {"category_numId": 1, "skill_numId": 3, "competency_numIds": [10, 11, 12, 55]},
            {"category_numId": 1, "skill_numId": 4, "competency_numIds": [12]},
            {"category_numId": 2, "skill_numId": 5, "competency_numIds": [13, -30001]},
        ])
        result = reconcile_selection(text, snapshot)
        selected = {c.id for cat in result.categories for s in cat.skills for c in s.competencies}
        assert selected == {10, 11, 12, 13}
        assert selected <= _snapshot_competency_ids(snapshot)

    def test_numeric_strings_are_accepted(self, snapshot):
        text = _reply([{"category_numId": "1", "skill_numId": 3.0, "competency_numIds": ["11"]}])
        result = reconcile_selection(text, snapshot)
        assert result.categories[0].skills[0].competencies[0].id == 11

    def test_boolean_identifiers_are_rejected(self, snapshot):
        text = _reply([{"category_numId": True, "skill_numId": 3, "competency_numIds": [10]}])
        assert reconcile_selection(text, snapshot).categories == []

    def test_position_name(self, snapshot):
        named = reconcile_selection(_reply([], position_name="Engineer @ Acme"), snapshot)
        legacy = reconcile_selection(_reply([], positionName="Dev @ Beta"), snapshot)
        unnamed = reconcile_selection(_reply([]), snapshot)
        assert named.position_name == "Engineer @ Acme"
        assert legacy.position_name == "Dev @ Beta"
        assert unnamed.position_name == "Untitled Position"

    def test_json_wrapped_in_prose(self, snapshot):
        text = "Here is my selection:\n```json\n" + _reply(
            [{"category_numId": 2, "skill_numId": 5, "competency_numIds": [13]}]) + "\n```\nThanks!"
        result = reconcile_selection(text, snapshot)
        assert result.categories[0].skills[0].competencies[0].name == "Hooks"

    @pytest.mark.parametrize("text", [
        "I could not find any relevant skills.",
        "",
        '{"position_name": "Engineer"}',
        '{"selected_competencies": "all of them"}',
    ])
    def test_malformed_response_raises(self, snapshot, text):
        with pytest.raises(MalformedSelectionResponse):
            reconcile_selection(text, snapshot)

    def test_json_nested_too_deep_is_malformed(self, snapshot):
        text = '{"selected_competencies": ' + "[" * 100_000 + "]" * 100_000 + "}"
        with pytest.raises(MalformedSelectionResponse):
            reconcile_selection(text, snapshot)


class TestSelectSkills:
    def test_prompt_embeds_indexed_taxonomy_and_description(self, snapshot, fake_llm):
        reply = _reply([{"category_numId": 1, "skill_numId": 3, "competency_numIds": [10]}],
                       position_name="Frontend Dev @ Acme")
        prompts = fake_llm(selection_module, reply)

        result = asyncio.run(select_skills("We need a JavaScript developer.", snapshot))

        assert result.position_name == "Frontend Dev @ Acme"
        assert result.categories[0].skills[0].competencies[0].id == 10
        assert len(prompts) == 1
        assert "We need a JavaScript developer." in prompts[0]
        assert '{"numId":10,"name":"ES6+"}' in prompts[0]
        assert '"numId":5,"name":"React"' in prompts[0]

    def test_long_description_is_trimmed(self, snapshot, fake_llm, monkeypatch):
        monkeypatch.setattr(settings, "JOB_DESCRIPTION_MAX_CHARS", 12)
        prompts = fake_llm(selection_module, _reply([]))

        asyncio.run(select_skills("abcdefghijklmnopqrstuvwxyz", snapshot))

        assert "abcdefghijkl..." in prompts[0]
        assert "abcdefghijklm" not in prompts[0]

    def test_service_failure_propagates(self, snapshot, fake_llm):
        fake_llm(selection_module, error=ServiceFailure("quota exceeded"))
        with pytest.raises(ServiceFailure, match="quota exceeded"):
            asyncio.run(select_skills("Any role", snapshot))
