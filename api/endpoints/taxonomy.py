from typing import List
from fastapi import APIRouter
from domain.schemas import SkillListing
from infra.repositories.taxonomy_repository import TaxonomyRepository

router = APIRouter()
taxonomy_repo = TaxonomyRepository()


@router.get("/taxonomy/skills", response_model=List[SkillListing])
def list_skills() -> List[SkillListing]:
    return taxonomy_repo.list_skills()
