from fastapi import APIRouter
from domain.schemas import ExtractSkillsDebugResponse, ExtractSkillsRequest, SkillSelectionResult
from domain.services.skill_selection import select_skills
from domain.taxonomy import build_snapshot
from infra.repositories.taxonomy_repository import TaxonomyRepository

router = APIRouter()
taxonomy_repo = TaxonomyRepository()


@router.post("/skills/extract", response_model=SkillSelectionResult)
async def extract_skills(body: ExtractSkillsRequest) -> SkillSelectionResult:
    snapshot = build_snapshot(taxonomy_repo.load_categories())
    return await select_skills(body.job_description, snapshot)


@router.post("/skills/extract/debug", response_model=ExtractSkillsDebugResponse)
async def extract_skills_debug(body: ExtractSkillsRequest) -> ExtractSkillsDebugResponse:
    snapshot = build_snapshot(taxonomy_repo.load_categories())
    result = await select_skills(body.job_description, snapshot)
    return ExtractSkillsDebugResponse(
        result=result,
        input_length=len(body.job_description),
        input_preview=body.job_description[:200] + "...",
        category_count=len(snapshot.categories),
        skill_count=snapshot.skill_count,
    )
