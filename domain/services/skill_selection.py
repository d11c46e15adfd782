import logging
from typing import Any, Dict, List, Optional

from app.settings import settings
from domain.errors import MalformedSelectionResponse
from domain.parsing import load_first_json_object
from domain.schemas import (
    EntityId,
    SelectedCategory,
    SelectedCompetency,
    SelectedSkill,
    SkillSelectionResult,
    TaxonomySnapshot,
)
from infra.llm.client import generate_text
from infra.llm.prompts import SKILL_SELECTION_SYSTEM, build_skill_selection_prompt

logger = logging.getLogger(__name__)

DEFAULT_POSITION_NAME = "Untitled Position"


def _as_id(value: Any) -> Optional[EntityId]:
    """Coerce a model-supplied identifier; anything non-integral is unresolvable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _position_name(data: Dict[str, Any]) -> str:
    for key in ("position_name", "positionName"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return DEFAULT_POSITION_NAME


def trim_job_description(job_description: str) -> str:
    limit = settings.JOB_DESCRIPTION_MAX_CHARS
    if len(job_description) > limit:
        return job_description[:limit] + "..."
    return job_description


def reconcile_selection(text: str, snapshot: TaxonomySnapshot) -> SkillSelectionResult:
    """Rebuild the selected subtree of ``snapshot`` from a raw selection reply.

    References that do not resolve are dropped; skills and categories left
    without children are pruned.
    """
    data = load_first_json_object(text)
    if data is None:
        logger.error("No JSON object in selection response: %s", text[:500])
        raise MalformedSelectionResponse("No JSON object found in skill selection response")
    entries = data.get("selected_competencies")
    if not isinstance(entries, list):
        raise MalformedSelectionResponse(
            "Skill selection response is missing a 'selected_competencies' array")

    categories: Dict[EntityId, SelectedCategory] = {}
    skills: Dict[EntityId, Dict[EntityId, SelectedSkill]] = {}
    dropped = 0

    for entry in entries:
        if not isinstance(entry, dict):
            dropped += 1
            continue
        category_id = _as_id(entry.get("category_numId"))
        category = snapshot.find_category(category_id) if category_id is not None else None
        if category is None:
            logger.debug("Dropping selection with unknown category %r", entry.get("category_numId"))
            dropped += 1
            continue
        skill_id = _as_id(entry.get("skill_numId"))
        skill = category.find_skill(skill_id) if skill_id is not None else None
        if skill is None:
            logger.debug("Dropping selection with unknown skill %r in category %s",
                          entry.get("skill_numId"), category.id)
            dropped += 1
            continue

        out_category = categories.get(category.id)
        if out_category is None:
            out_category = SelectedCategory(id=category.id, name=category.name)
            categories[category.id] = out_category
            skills[category.id] = {}
        out_skill = skills[category.id].get(skill.id)
        if out_skill is None:
            out_skill = SelectedSkill(id=skill.id, name=skill.name)
            skills[category.id][skill.id] = out_skill
            out_category.skills.append(out_skill)

        raw_ids = entry.get("competency_numIds")
        if not isinstance(raw_ids, list):
            raw_ids = []
        taken = {c.id for c in out_skill.competencies}
        for raw_id in raw_ids:
            competency_id = _as_id(raw_id)
            competency = skill.find_competency(competency_id) if competency_id is not None else None
            if competency is None:
                logger.debug("Dropping unknown competency %r in skill %s", raw_id, skill.id)
                dropped += 1
                continue
            if competency.id in taken:
                continue
            taken.add(competency.id)
            out_skill.competencies.append(SelectedCompetency(id=competency.id, name=competency.name))

    pruned: List[SelectedCategory] = []
    for out_category in categories.values():
        out_category.skills = [s for s in out_category.skills if s.competencies]
        if out_category.skills:
            pruned.append(out_category)

    result = SkillSelectionResult(position_name=_position_name(data), categories=pruned)
    logger.info(
        "Selected %d competencies across %d categories for %r (%d references dropped)",
        sum(len(s.competencies) for c in pruned for s in c.skills),
        len(pruned), result.position_name, dropped,
    )
    return result


async def select_skills(job_description: str, snapshot: TaxonomySnapshot) -> SkillSelectionResult:
    """Ask the generative service which parts of ``snapshot`` fit the job description.

    Raises ``ServiceFailure`` when the service call fails and
    ``MalformedSelectionResponse`` when the reply carries no selection object.
    """
    logger.info("Starting skill selection (%d chars of job description)", len(job_description))
    prompt = build_skill_selection_prompt(trim_job_description(job_description), snapshot)
    text = await generate_text(prompt, system=SKILL_SELECTION_SYSTEM)
    return reconcile_selection(text, snapshot)
