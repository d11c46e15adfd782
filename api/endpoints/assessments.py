from fastapi import APIRouter
from domain.schemas import AssessmentResponse, AssessmentTrace, GenerateAssessmentRequest
from domain.services.assessment_composition import compose_assessment

router = APIRouter()


@router.post("/assessments/generate", response_model=AssessmentResponse)
async def generate_assessment(body: GenerateAssessmentRequest) -> AssessmentResponse:
    assessment = await compose_assessment(body.job_description, body.skills)
    return AssessmentResponse(
        context=assessment.context,
        questions=assessment.questions,
        internal=AssessmentTrace(competency_id_map=assessment.competency_id_map),
    )
