from typing import Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

EntityId = int

_ID_ALIASES = AliasChoices("id", "numId")


# Raw taxonomy as handed over by the persistence collaborator.

class TaxonomyCompetencyIn(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str


class TaxonomySkillIn(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str
    competencies: List[TaxonomyCompetencyIn] = Field(default_factory=list)


class TaxonomyCategoryIn(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str
    skills: List[TaxonomySkillIn] = Field(default_factory=list)


# Fully identified, read-only snapshot.

class Competency(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str


class Skill(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    competencies: Tuple[Competency, ...] = ()

    def find_competency(self, competency_id: EntityId) -> Optional[Competency]:
        return next((c for c in self.competencies if c.id == competency_id), None)


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: EntityId
    name: str
    skills: Tuple[Skill, ...] = ()

    def find_skill(self, skill_id: EntityId) -> Optional[Skill]:
        return next((s for s in self.skills if s.id == skill_id), None)


class TaxonomySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: Tuple[Category, ...] = ()

    def find_category(self, category_id: EntityId) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    @property
    def skill_count(self) -> int:
        return sum(len(c.skills) for c in self.categories)

    @property
    def competency_count(self) -> int:
        return sum(len(s.competencies) for c in self.categories for s in c.skills)


# Skill selection result. Also the input of assessment composition, where a
# reviewer may have edited it, so identifiers are optional there.

class SelectedCompetency(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str
    selected: bool = True


class SelectedSkill(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str
    competencies: List[SelectedCompetency] = Field(default_factory=list)


class SelectedCategory(BaseModel):
    id: Optional[EntityId] = Field(default=None, validation_alias=_ID_ALIASES)
    name: str
    skills: List[SelectedSkill] = Field(default_factory=list)


class SkillSelectionResult(BaseModel):
    position_name: str = Field(
        default="Untitled Position",
        validation_alias=AliasChoices("position_name", "positionName"),
    )
    categories: List[SelectedCategory] = Field(default_factory=list)


# Generated assessment.

class CompetencyRef(BaseModel):
    id: Optional[EntityId] = None
    name: str
    skill_id: Optional[EntityId] = None


class AssessmentQuestion(BaseModel):
    context: str = ""
    question: str
    competencies_assessed: List[CompetencyRef] = Field(default_factory=list)


class CompetencyMapEntry(BaseModel):
    id: EntityId
    name: str
    category_id: EntityId
    skill_id: EntityId


class GeneratedAssessment(BaseModel):
    context: str
    questions: List[AssessmentQuestion]
    # traceability only, not part of the consumed contract
    competency_id_map: Dict[str, CompetencyMapEntry] = Field(default_factory=dict, exclude=True)


# HTTP payloads.

class ExtractSkillsRequest(BaseModel):
    job_description: str = Field(..., min_length=1)


class ExtractSkillsDebugResponse(BaseModel):
    result: SkillSelectionResult
    input_length: int
    input_preview: str
    category_count: int
    skill_count: int


class GenerateAssessmentRequest(BaseModel):
    job_description: str = Field(..., min_length=1)
    skills: SkillSelectionResult


class AssessmentTrace(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    competency_id_map: Dict[str, CompetencyMapEntry] = Field(
        default_factory=dict, alias="competencyIdMap")


class AssessmentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    context: str
    questions: List[AssessmentQuestion]
    internal: AssessmentTrace = Field(default_factory=AssessmentTrace, alias="_internal")


class CompetencyName(BaseModel):
    name: str


class SkillListing(BaseModel):
    skill_name: str
    category_name: str
    competencies: List[CompetencyName] = Field(default_factory=list)
