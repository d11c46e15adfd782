from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from domain.schemas import (
    CompetencyName,
    SkillListing,
    TaxonomyCategoryIn,
    TaxonomyCompetencyIn,
    TaxonomySkillIn,
)
from infra.db.session import SessionLocal
from infra.db.models import CategoryRecord, SkillRecord, CompetencyRecord


def _full_tree():
    return select(CategoryRecord).order_by(CategoryRecord.id).options(
        selectinload(CategoryRecord.skills).selectinload(SkillRecord.competencies))


class TaxonomyRepository:
    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def load_categories(self) -> List[TaxonomyCategoryIn]:
        with self._session_factory() as s:
            categories = s.scalars(_full_tree()).all()
            return [
                TaxonomyCategoryIn(id=c.id, name=c.name, skills=[
                    TaxonomySkillIn(id=sk.id, name=sk.name, competencies=[
                        TaxonomyCompetencyIn(id=comp.id, name=comp.name)
                        for comp in sk.competencies
                    ])
                    for sk in c.skills
                ])
                for c in categories
            ]

    def list_skills(self) -> List[SkillListing]:
        with self._session_factory() as s:
            categories = s.scalars(_full_tree()).all()
            return [
                SkillListing(
                    skill_name=sk.name,
                    category_name=c.name,
                    competencies=[CompetencyName(name=comp.name) for comp in sk.competencies],
                )
                for c in categories
                for sk in c.skills
            ]

    def upsert_path(self, category: str, skill: str, competency: str) -> Tuple[int, int, int]:
        """Find or create category > skill > competency by name; returns their ids."""
        with self._session_factory() as s:
            cat = s.scalar(select(CategoryRecord).where(CategoryRecord.name == category))
            if not cat:
                cat = CategoryRecord(name=category)
                s.add(cat)
                s.flush()
            sk = s.scalar(select(SkillRecord).where(
                SkillRecord.category_id == cat.id, SkillRecord.name == skill))
            if not sk:
                sk = SkillRecord(name=skill, category_id=cat.id)
                s.add(sk)
                s.flush()
            comp = s.scalar(select(CompetencyRecord).where(
                CompetencyRecord.skill_id == sk.id, CompetencyRecord.name == competency))
            if not comp:
                comp = CompetencyRecord(name=competency, skill_id=sk.id)
                s.add(comp)
                s.flush()
            ids = (cat.id, sk.id, comp.id)
            s.commit()
        return ids
