"""Tiered decoding of assessment text produced by the generative service.

Decoders run in order and each one is total: it returns a ``ParseOutcome``
whose quality decides whether the next decoder runs. The last decoder always
yields a usable assessment.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from domain.parsing import first_json_object_span
from domain.schemas import AssessmentQuestion, CompetencyMapEntry, CompetencyRef, GeneratedAssessment

logger = logging.getLogger(__name__)

CompetencyMap = Mapping[str, CompetencyMapEntry]

FALLBACK_CONTEXT = (
    "Based on the job description, complete the following assessment tasks "
    "to demonstrate your skills."
)
PLACEHOLDER_CONTEXT = "Technical assessment scenario"
PLACEHOLDER_QUESTION = "Demonstrate your technical skills by solving this problem"
UNKNOWN_COMPETENCY = "Unknown Competency"

_CASE_HEADING = re.compile(r"^[ \t]*#{1,3}[ \t]*Assessment Case\b[^\n]*$", re.I | re.M)
_QUESTIONS_HEADING = re.compile(r"^[ \t]*#{1,3}[ \t]*Questions\b[^\n]*$", re.I | re.M)
_QUESTION_HEADING = re.compile(
    r"^[ \t]*(?:#{1,4}[ \t]*|\*\*)Question[ \t]+\d+\b[^\n]*$", re.I | re.M)
_ASSESSED_MARKER = re.compile(
    r"^[ \t]*\**[ \t]*(?:skills|competencies)[ \t]+assessed[ \t]*\**[ \t]*:[ \t]*\**", re.I | re.M)
_QUESTION_MARKER = re.compile(r"^[ \t]*\**[ \t]*Question[ \t]*\**[ \t]*:[ \t]*\**[ \t]*", re.I | re.M)
_BLANK_LINE = re.compile(r"\n[ \t]*\n")
_MARKDOWN_FENCE = re.compile(r"```markdown\s*(.*?)\s*```", re.S)


class ParseQuality(IntEnum):
    EMPTY = 0
    PARTIAL = 1
    FULL = 2


@dataclass
class ParseOutcome:
    context: str = ""
    questions: List[AssessmentQuestion] = field(default_factory=list)

    @property
    def quality(self) -> ParseQuality:
        if self.context and self.questions:
            return ParseQuality.FULL
        if self.context or self.questions:
            return ParseQuality.PARTIAL
        return ParseQuality.EMPTY


def normalize_name(name: str) -> str:
    return name.strip().strip("*_`").strip().lower()


def resolve_competency(name: str, competency_map: CompetencyMap) -> CompetencyRef:
    """Map a model-authored competency name back to its identifiers.

    Unknown names are kept with null identifiers.
    """
    entry = competency_map.get(normalize_name(name))
    if entry is None:
        return CompetencyRef(id=None, name=name, skill_id=None)
    return CompetencyRef(id=entry.id, name=name, skill_id=entry.skill_id)


def _split_names(text: str) -> List[str]:
    names = []
    for part in re.split(r"[,\n]", text):
        cleaned = part.strip().lstrip("-*•").strip().strip("*_`").strip()
        if cleaned:
            names.append(cleaned)
    return names


def _parse_question_block(block: str, competency_map: CompetencyMap) -> Optional[AssessmentQuestion]:
    marker = _ASSESSED_MARKER.search(block)
    if marker:
        # the name list ends at the first blank line
        body = block[:marker.start()]
        names_text = _BLANK_LINE.split(block[marker.end():].lstrip(), maxsplit=1)[0]
    else:
        body, names_text = block, ""
    body = body.strip()

    explicit = _QUESTION_MARKER.search(body)
    if explicit:
        context, question = body[:explicit.start()], body[explicit.end():]
    else:
        parts = _BLANK_LINE.split(body, maxsplit=1)
        context, question = (parts[0], parts[1]) if len(parts) == 2 else ("", body)
    question = question.strip()
    if not question:
        return None
    return AssessmentQuestion(
        context=context.strip(),
        question=question,
        competencies_assessed=[resolve_competency(n, competency_map) for n in _split_names(names_text)],
    )


def parse_structured_sections(text: str, competency_map: CompetencyMap) -> ParseOutcome:
    """Tier 1: ``# Assessment Case`` / ``# Questions`` / ``## Question N`` layout."""
    case = _CASE_HEADING.search(text)
    questions_heading = _QUESTIONS_HEADING.search(text, case.end() if case else 0)
    if not case or not questions_heading:
        return ParseOutcome()

    outcome = ParseOutcome(context=text[case.end():questions_heading.start()].strip())
    section = text[questions_heading.end():]
    headings = list(_QUESTION_HEADING.finditer(section))
    for i, heading in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(section)
        question = _parse_question_block(section[heading.end():end], competency_map)
        if question is not None:
            outcome.questions.append(question)
    return outcome


def _json_competency(raw: Any, competency_map: CompetencyMap) -> CompetencyRef:
    if isinstance(raw, str):
        return resolve_competency(raw, competency_map)
    if not isinstance(raw, dict):
        return CompetencyRef(id=None, name=UNKNOWN_COMPETENCY)
    name = raw.get("name")
    name = name.strip() if isinstance(name, str) and name.strip() else None
    if name is not None:
        ref = resolve_competency(name, competency_map)
        if ref.id is not None:
            return ref
    # a model-supplied id is only trusted when it names a known competency
    claimed = raw.get("numId", raw.get("id"))
    if isinstance(claimed, int) and not isinstance(claimed, bool):
        for entry in competency_map.values():
            if entry.id == claimed:
                return CompetencyRef(id=entry.id, name=name or entry.name, skill_id=entry.skill_id)
    return CompetencyRef(id=None, name=name or UNKNOWN_COMPETENCY, skill_id=None)


def _heuristic_context(text: str, json_span: Tuple[int, int]) -> str:
    fenced = _MARKDOWN_FENCE.search(text)
    if fenced and fenced.group(1).strip():
        return fenced.group(1).strip()
    prose = text[:json_span[0]] + "\n\n" + text[json_span[1]:]
    prose = re.sub(r"```\w*", "", prose)
    for paragraph in prose.split("\n\n"):
        if len(paragraph.strip()) > 50:
            return paragraph.strip()
    return ""


def parse_embedded_json(text: str, competency_map: CompetencyMap) -> ParseOutcome:
    """Tier 2: a fenced or bare JSON object carrying a ``questions`` array."""
    span = first_json_object_span(text, containing='"questions"')
    if span is None:
        return ParseOutcome()
    data: Dict[str, Any] = json.loads(text[span[0]:span[1]])
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        return ParseOutcome()

    outcome = ParseOutcome()
    context = data.get("context")
    if isinstance(context, str) and context.strip():
        outcome.context = context.strip()
    else:
        outcome.context = _heuristic_context(text, span)

    for raw in raw_questions:
        if not isinstance(raw, dict):
            continue
        question_text = raw.get("question")
        if not isinstance(question_text, str) or not question_text.strip():
            continue
        # older replies name the list skills_assessed
        competencies = raw.get("competencies_assessed") or raw.get("skills_assessed") or []
        if not isinstance(competencies, list):
            competencies = []
        question_context = raw.get("context")
        outcome.questions.append(AssessmentQuestion(
            context=question_context.strip() if isinstance(question_context, str) else "",
            question=question_text.strip(),
            competencies_assessed=[_json_competency(c, competency_map) for c in competencies],
        ))
    return outcome


def salvage_plain_text(text: str, competency_map: CompetencyMap) -> ParseOutcome:
    """Tier 3: build a minimal assessment from whatever text came back."""
    tags = [
        CompetencyRef(id=entry.id, name=entry.name, skill_id=entry.skill_id)
        for entry in list(competency_map.values())[:2]
    ]
    lines = [line.strip() for line in (text or "").splitlines() if len(line.strip()) > 20]
    if len(lines) > 2:
        question = AssessmentQuestion(context=lines[0], question=lines[1], competencies_assessed=tags)
    else:
        question = AssessmentQuestion(
            context=PLACEHOLDER_CONTEXT, question=PLACEHOLDER_QUESTION, competencies_assessed=tags)
    return ParseOutcome(context=FALLBACK_CONTEXT, questions=[question])


Decoder = Callable[[str, CompetencyMap], ParseOutcome]

DECODERS: List[Tuple[str, Decoder]] = [
    ("structured sections", parse_structured_sections),
    ("embedded json", parse_embedded_json),
]


def parse_assessment_response(text: str, competency_map: CompetencyMap) -> GeneratedAssessment:
    """Decode ``text`` into an assessment; never raises for malformed content."""
    text = text or ""
    for label, decoder in DECODERS:
        try:
            outcome = decoder(text, competency_map)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Assessment decoder %r failed: %s", label, exc)
            continue
        if outcome.quality is ParseQuality.FULL:
            logger.info("Parsed assessment via %s: %d questions", label, len(outcome.questions))
            return GeneratedAssessment(
                context=outcome.context, questions=outcome.questions,
                competency_id_map=dict(competency_map))
        logger.info("Assessment decoder %r gave %s result", label, outcome.quality.name.lower())

    logger.warning("Falling back to plain-text salvage for assessment response")
    outcome = salvage_plain_text(text, competency_map)
    return GeneratedAssessment(
        context=outcome.context, questions=outcome.questions,
        competency_id_map=dict(competency_map))
