import json
from typing import Dict, List

from domain.schemas import TaxonomySnapshot

SKILL_SELECTION_SYSTEM = "You select skills from a fixed taxonomy and return only valid JSON."

ASSESSMENT_SYSTEM = "You write realistic technical assessment case studies for recruiters."

SKILL_SELECTION_PROMPT = """
You are helping a recruitment platform pick the relevant competencies for a job description.

# Job Description:
{job_description}

# Available Skills (every node carries its numId):
{taxonomy}

Based on the job description:
1. Name the position, in the form "Job Title @ Company Name".
2. Select the competencies that are explicitly mentioned OR strongly implied by the role.

Respond ONLY with valid JSON listing the numIds of the selected competencies:
{{
  "position_name": "Job Title @ Company Name",
  "selected_competencies": [
    {{
      "category_numId": 123,
      "skill_numId": 456,
      "competency_numIds": [789, 101]
    }}
  ]
}}

Rules:
- Use ONLY numIds present in the data above; a skill_numId must belong to its category_numId and every competency numId to its skill.
- ONLY return competencies relevant to the job description.
- No explanations, no comments, no text outside the JSON.
"""

ASSESSMENT_PROMPT = """# Technical Assessment Case Study Generator

Write a technical assessment case study for the job description below, assessing the
competencies in the skills list. Every category, skill and competency carries a numId.

## Guidelines
- Pick a realistic company and role matching the job description and describe a detailed
  scenario (datasets, tools, sample tables where relevant) that supports 6-8 questions.
- Do not add a title; start the case directly with the scenario. Markdown is welcome.
- Each question gets a short context focused on one aspect of the scenario, then a clear,
  challenging question answerable in 5-10 minutes. Build complexity progressively.
- Tag every question with 2-4 competencies from the skills list, using their exact names.
- Cover at least 75% of the listed competencies, favouring the most relevant ones, and
  include at least one question spanning several categories.

## Output Format
Return exactly this layout and nothing else:

# Assessment Case
<the scenario>

# Questions
## Question 1: <short title>
<context for this question>

Question: <the question itself>

Skills assessed: <competency name>, <competency name>

## Question 2: <short title>
...

## Job Description:
{job_description}

## Skills List:
{skills}
"""


def indexed_taxonomy(snapshot: TaxonomySnapshot) -> List[Dict]:
    return [
        {
            "numId": category.id,
            "name": category.name,
            "skills": [
                {
                    "numId": skill.id,
                    "name": skill.name,
                    "competencies": [{"numId": c.id, "name": c.name} for c in skill.competencies],
                }
                for skill in category.skills
            ],
        }
        for category in snapshot.categories
    ]


def build_skill_selection_prompt(job_description: str, snapshot: TaxonomySnapshot) -> str:
    taxonomy = json.dumps({"categories": indexed_taxonomy(snapshot)},
                          ensure_ascii=False, separators=(",", ":"))
    return SKILL_SELECTION_PROMPT.format(job_description=job_description, taxonomy=taxonomy)


def build_assessment_prompt(job_description: str, formatted_skills: List[Dict]) -> str:
    skills = json.dumps(formatted_skills, ensure_ascii=False, indent=2)
    return ASSESSMENT_PROMPT.format(job_description=job_description, skills=skills)
