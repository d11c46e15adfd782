import logging
from typing import Dict, List, Tuple

from domain.schemas import CompetencyMapEntry, GeneratedAssessment, SkillSelectionResult
from domain.services.assessment_parsing import normalize_name, parse_assessment_response
from domain.taxonomy import EntityKind, IdentifierSequence, carried_ids
from infra.llm.client import generate_text
from infra.llm.prompts import ASSESSMENT_SYSTEM, build_assessment_prompt

logger = logging.getLogger(__name__)


def index_selection(subset: SkillSelectionResult) -> Tuple[List[Dict], Dict[str, CompetencyMapEntry]]:
    """Fill in missing identifiers and build the competency identifier map.

    Only selected competencies are kept; skills without one and categories
    without a remaining skill are left out. Returns the prompt-facing tree and
    the map keyed by lower-cased competency name.
    """
    ids = IdentifierSequence(reserved=carried_ids(subset.categories))
    competency_map: Dict[str, CompetencyMapEntry] = {}
    formatted: List[Dict] = []

    for category in subset.categories:
        category_id = ids.resolve(category.id, EntityKind.CATEGORY)
        skills = []
        for skill in category.skills:
            selected = [c for c in skill.competencies if c.selected]
            if not selected:
                continue
            skill_id = ids.resolve(skill.id, EntityKind.SKILL)
            competencies = []
            for competency in selected:
                competency_id = ids.resolve(competency.id, EntityKind.COMPETENCY)
                key = normalize_name(competency.name)
                if key in competency_map:
                    logger.debug("Competency name %r already mapped, keeping first", competency.name)
                else:
                    competency_map[key] = CompetencyMapEntry(
                        id=competency_id, name=competency.name,
                        category_id=category_id, skill_id=skill_id,
                    )
                competencies.append({"numId": competency_id, "name": competency.name})
            skills.append({"numId": skill_id, "name": skill.name, "competencies": competencies})
        if skills:
            formatted.append({"numId": category_id, "name": category.name, "skills": skills})

    return formatted, competency_map


async def compose_assessment(job_description: str, subset: SkillSelectionResult) -> GeneratedAssessment:
    """Generate an assessment for the selected competencies.

    Malformed replies degrade to a best-effort assessment; only a failing
    service call raises (``ServiceFailure``).
    """
    formatted, competency_map = index_selection(subset)
    logger.info(
        "Starting assessment composition for %r: %d competencies in %d categories",
        subset.position_name, len(competency_map), len(formatted),
    )
    prompt = build_assessment_prompt(job_description, formatted)
    text = await generate_text(prompt, system=ASSESSMENT_SYSTEM)
    assessment = parse_assessment_response(text, competency_map)
    unresolved = sum(
        1 for q in assessment.questions for c in q.competencies_assessed if c.id is None)
    if unresolved:
        logger.warning("%d assessed competencies could not be resolved to identifiers", unresolved)
    return assessment
