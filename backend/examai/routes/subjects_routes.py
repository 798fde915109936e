"""
Subject catalogue and templated practice prompts.

Endpoints:
- GET /api/subjects/{exam}/subjects
- POST /api/subjects/practice
"""

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..errors import ApiError
from ..models import PracticeRequest, User
from ..services.question_generation import clamp_count

logger = logging.getLogger(__name__)

SUBJECT_MAP: Dict[str, List[str]] = {
    "GATE": [
        "Engineering Mathematics",
        "Digital Logic",
        "Computer Organization",
        "Data Structures",
        "Algorithms",
        "Theory of Computation",
        "Operating Systems",
        "Databases",
        "Computer Networks",
        "Compiler Design",
        "Software Engineering",
    ],
    "JEE": ["Mathematics", "Physics", "Chemistry", "Mechanics", "Electrostatics", "Modern Physics"],
    "NEET": ["Physics", "Chemistry", "Biology"],
    "CAT": ["Quantitative Ability", "Verbal Ability", "Data Interpretation", "Logical Reasoning"],
    "UPSC": ["Polity", "History", "Geography", "Economy", "Environment"],
}

PRACTICE_TEMPLATES: Dict[str, List[str]] = {
    "Easy": [
        "Explain the basic concept of {topic}.",
        "What is the definition of {topic}? Give one example.",
        "Choose the best option: which statement about {topic} is true?",
    ],
    "Medium": [
        "Solve: A problem involving {topic}. Provide steps.",
        "Derive the formula related to {topic} and explain assumptions.",
        "Compare and contrast {topic} with a close topic.",
    ],
    "Hard": [
        "Design an algorithm to handle {topic} under constraints; analyze complexity.",
        "Prove a key theorem related to {topic} or provide a counterexample.",
        "Advanced problem: combine {topic} with another concept and solve.",
    ],
}


def subjects_for(exam: str) -> List[str]:
    return SUBJECT_MAP.get((exam or "GATE").upper(), SUBJECT_MAP["GATE"])


def practice_prompts(subject: str, difficulty: str, count: int) -> str:
    """Numbered practice prompts cycling through templates and topic variants."""
    topics = [
        subject,
        f"{subject} - core concept",
        f"{subject} application",
        f"{subject} tricky case",
        f"{subject} past-year style",
    ]
    choices = PRACTICE_TEMPLATES.get(difficulty, PRACTICE_TEMPLATES["Easy"])
    lines = [
        f"{i + 1}. " + choices[i % len(choices)].replace("{topic}", topics[i % len(topics)])
        for i in range(count)
    ]
    return "\n\n".join(lines)


def create_subjects_routes(ctx: AppContext) -> APIRouter:
    router = APIRouter(prefix="/api/subjects", tags=["subjects"])

    @router.get("/{exam}/subjects")
    async def get_subjects(exam: str, user: User = Depends(ctx.auth.current_user)):
        exam = exam.upper()
        return {"ok": True, "exam": exam, "subjects": subjects_for(exam)}

    @router.post("/practice")
    async def practice(body: PracticeRequest, user: User = Depends(ctx.auth.current_user)):
        if not body.subject.strip():
            raise ApiError(400, "Subject required")
        count = clamp_count(body.count, maximum=ctx.settings.MAX_GENERATED_QUESTIONS)
        return {"ok": True, "questions": practice_prompts(body.subject, body.difficulty, count)}

    return router
