"""Shared fixtures. The environment is pinned before any project module loads."""

from __future__ import annotations

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="taxonomy-tests-")
os.environ["SQLITE_PATH"] = os.path.join(_DB_DIR, "test.sqlite3")
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""

from typing import Callable, List

import pytest

from domain.schemas import (
    SelectedCategory,
    SelectedCompetency,
    SelectedSkill,
    SkillSelectionResult,
    TaxonomyCategoryIn,
)
from domain.taxonomy import build_snapshot


@pytest.fixture
def db():
    from infra.db.session import Base, engine, init_db

    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def raw_taxonomy() -> List[TaxonomyCategoryIn]:
    return [
        TaxonomyCategoryIn.model_validate({
            "id": 1,
            "name": "Programming",
            "skills": [
                {"id": 3, "name": "JavaScript", "competencies": [
                    {"id": 10, "name": "ES6+"},
                    {"id": 11, "name": "Async"},
                ]},
                {"id": 4, "name": "TypeScript", "competencies": [
                    {"id": 12, "name": "Type Definitions"},
                ]},
            ],
        }),
        TaxonomyCategoryIn.model_validate({
            "id": 2,
            "name": "Frontend",
            "skills": [
                {"id": 5, "name": "React", "competencies": [
                    {"id": 13, "name": "Hooks"},
                ]},
            ],
        }),
    ]


@pytest.fixture
def snapshot(raw_taxonomy):
    return build_snapshot(raw_taxonomy)


@pytest.fixture
def javascript_selection() -> SkillSelectionResult:
    return SkillSelectionResult(
        position_name="Frontend Engineer @ Acme",
        categories=[SelectedCategory(id=1, name="Programming", skills=[
            SelectedSkill(id=3, name="JavaScript", competencies=[
                SelectedCompetency(id=10, name="ES6+"),
                SelectedCompetency(id=11, name="Async"),
            ]),
        ])],
    )


@pytest.fixture
def fake_llm(monkeypatch) -> Callable:
    """Replace ``generate_text`` in a module with a canned reply.

    Returns the list of prompts the fake received.
    """

    def install(module, reply: str = "", error: Exception | None = None) -> List[str]:
        prompts: List[str] = []

        async def _generate_text(prompt: str, *, system: str | None = None) -> str:
            prompts.append(prompt)
            if error is not None:
                raise error
            return reply

        monkeypatch.setattr(module, "generate_text", _generate_text)
        return prompts

    return install
