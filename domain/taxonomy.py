"""Identifier allocation and the indexed taxonomy snapshot.

Identifiers are signed integers. Non-negative values belong to the persistence
layer; negative values are synthetic and only meaningful for one pipeline run.
Synthetic identifiers are partitioned per entity kind by a fixed offset so a
category, a skill and a competency can never share one.
"""
import itertools
import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Set

from domain.schemas import (
    Category,
    Competency,
    EntityId,
    Skill,
    TaxonomyCategoryIn,
    TaxonomySnapshot,
)

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    CATEGORY = "category"
    SKILL = "skill"
    COMPETENCY = "competency"


KIND_OFFSETS: Dict[EntityKind, int] = {
    EntityKind.CATEGORY: 10_000,
    EntityKind.SKILL: 20_000,
    EntityKind.COMPETENCY: 30_000,
}
# width of each kind's synthetic range
KIND_SPAN = 10_000


def allocate_id(index: int, kind: EntityKind) -> EntityId:
    """Return the synthetic identifier for the ``index``-th entity of ``kind``."""
    if index < 0 or index >= KIND_SPAN:
        raise ValueError(f"{kind.value} index out of synthetic range: {index}")
    return -(index + 1 + KIND_OFFSETS[kind])


def is_synthetic(entity_id: EntityId) -> bool:
    return entity_id < 0


class IdentifierSequence:
    """Hands out ordinals per kind in traversal order for one pipeline run.

    Only nodes without an identifier consume an ordinal, so a tree with many
    persisted nodes does not exhaust the synthetic range. Identifiers already
    carried by the input win; ``reserved`` ones are skipped when minting.
    """

    def __init__(self, reserved: Optional[Dict[EntityKind, Set[EntityId]]] = None) -> None:
        self._counters: Dict[EntityKind, Iterator[int]] = {
            kind: itertools.count() for kind in EntityKind
        }
        self._reserved = reserved or {}

    def resolve(self, existing: Optional[EntityId], kind: EntityKind) -> EntityId:
        if existing is not None:
            return existing
        taken = self._reserved.get(kind, set())
        entity_id = allocate_id(next(self._counters[kind]), kind)
        while entity_id in taken:
            entity_id = allocate_id(next(self._counters[kind]), kind)
        return entity_id


def carried_ids(categories: Iterable) -> Dict[EntityKind, Set[EntityId]]:
    """Collect the identifiers a category/skill/competency tree already carries."""
    found: Dict[EntityKind, Set[EntityId]] = {kind: set() for kind in EntityKind}
    for category in categories:
        if category.id is not None:
            found[EntityKind.CATEGORY].add(category.id)
        for skill in category.skills:
            if skill.id is not None:
                found[EntityKind.SKILL].add(skill.id)
            for competency in skill.competencies:
                if competency.id is not None:
                    found[EntityKind.COMPETENCY].add(competency.id)
    return found


def build_snapshot(external_categories: Iterable[TaxonomyCategoryIn]) -> TaxonomySnapshot:
    """Freeze the collaborator's hierarchy into a fully identified snapshot.

    Nodes without an identifier get a synthetic one. Raises ``ValueError``
    when the collaborator hands over the same identifier twice for one kind.
    """
    external_categories = list(external_categories)
    ids = IdentifierSequence(reserved=carried_ids(external_categories))
    seen: Dict[EntityKind, Set[EntityId]] = {kind: set() for kind in EntityKind}
    minted = 0

    def claim(existing: Optional[EntityId], kind: EntityKind, name: str) -> EntityId:
        nonlocal minted
        entity_id = ids.resolve(existing, kind)
        if entity_id in seen[kind]:
            raise ValueError(f"duplicate {kind.value} id {entity_id} ({name!r})")
        seen[kind].add(entity_id)
        if existing is None and is_synthetic(entity_id):
            minted += 1
        return entity_id

    categories = []
    for raw_category in external_categories:
        category_id = claim(raw_category.id, EntityKind.CATEGORY, raw_category.name)
        skills = []
        for raw_skill in raw_category.skills:
            skill_id = claim(raw_skill.id, EntityKind.SKILL, raw_skill.name)
            competencies = tuple(
                Competency(id=claim(c.id, EntityKind.COMPETENCY, c.name), name=c.name)
                for c in raw_skill.competencies
            )
            skills.append(Skill(id=skill_id, name=raw_skill.name, competencies=competencies))
        categories.append(Category(id=category_id, name=raw_category.name, skills=tuple(skills)))

    snapshot = TaxonomySnapshot(categories=tuple(categories))
    logger.info(
        "Built taxonomy snapshot: %d categories, %d skills, %d competencies (%d synthetic ids)",
        len(snapshot.categories), snapshot.skill_count, snapshot.competency_count, minted,
    )
    return snapshot
