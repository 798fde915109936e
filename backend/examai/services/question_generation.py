"""
Practice question generation with Gemini.

The model is asked for a bare JSON array; the reply is parsed strictly
(optional Markdown fence, then JSON, then schema validation). Anything else is
reported as a failed generation rather than patched up.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError, field_validator, model_validator

from ..models import QUESTION_TYPES, Question
from ..utils import now_ms
from .gemini import GeminiService

logger = logging.getLogger(__name__)

EXAM_LABELS: Dict[str, str] = {
    "GATE": "GATE (technical, engineering)",
    "SSC": "SSC (government aptitude & reasoning)",
    "BANK": "Bank PO/Clerk (aptitude/reasoning)",
    "UPSC": "UPSC Prelims (general studies, objective)",
    "CAT": "CAT (aptitude / logical / quantitative)",
    "JEE": "JEE (physics/chemistry/maths objective)",
    "NEET": "NEET (biology/chemistry/physics objective)",
}

DIFFICULTY_GUIDANCE: Dict[str, str] = {
    "Easy": "Beginner / basic level. Straightforward, short, mostly one-step.",
    "Medium": "Exam-level difficulty for this exam (typical question style). Multi-step allowed.",
    "Hard": "Advanced / above exam level. Multi-step reasoning and longer calculations.",
}

FRESHNESS = (
    "Ensure high variation: do not repeat question phrasing, numbers, or structure from previous calls.\n"
    "Use randomized numeric values where relevant. Shuffle options. Avoid identical templates."
)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def clamp_count(value: Any, default: int = 10, maximum: int = 50) -> int:
    """Requested question count limited to 1..maximum; unusable values give the default."""
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    if count == 0:
        return default
    return min(maximum, max(1, count))


def normalize_difficulty(value: Any) -> str:
    text = str(value or "").strip().capitalize()
    return text if text in DIFFICULTY_GUIDANCE else "Medium"


def build_generation_prompt(exam: str, subject: str, difficulty: str, count: int) -> str:
    exam_label = EXAM_LABELS.get(exam.upper(), exam)
    output_spec = (
        "Return a JSON array ONLY (no explanatory text around JSON). Each item must be an object with:\n"
        "{\n"
        '  "id": "<unique id>",\n'
        '  "type": "<MCQ|MSQ|NAT>",\n'
        '  "marks": 1|2,\n'
        '  "question": "<full question text>",\n'
        '  "options": {"A": "...", "B": "...", "C": "...", "D": "..."},\n'
        '  "correctAnswer": "<A|B|C|D|comma-separated for MSQ|numeric for NAT>",\n'
        '  "explanation": "<short explanation for the answer>"\n'
        "}\n"
        "NAT questions omit options.\n"
        "Make sure correctAnswer exactly matches one of the option letters (or is numeric for NAT).\n"
        f"Return exactly {count} items in the array."
    )
    return "\n".join(
        [
            "You are an expert question author for competitive exams.",
            f"Exam: {exam_label}",
            f"Subject: {subject}",
            f"Difficulty: {difficulty} ({DIFFICULTY_GUIDANCE[difficulty]})",
            f"Number of questions: {count}",
            "",
            "Rules:",
            "- Output must follow strict JSON as specified below.",
            f"- Use the exam-style language and constraints for {exam_label}.",
            "- Use a mix of MCQ, MSQ and NAT as appropriate (for GATE include NAT & 2-mark where reasonable).",
            "- For MCQ use 4 options. For MSQ use 4 options and correctAnswer can be comma-separated letters. "
            "For NAT provide a numeric answer (no units unless necessary).",
            "",
            FRESHNESS,
            "",
            output_spec,
        ]
    )


class GeneratedQuestion(Question):
    """A question as returned by the model; stricter than Question."""

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("question item must be an object")
        data = dict(data)
        if data.get("correctAnswer") in (None, "") and data.get("answer") not in (None, ""):
            data["correctAnswer"] = data["answer"]
        if not data.get("question") and data.get("text"):
            data["question"] = data["text"]
        return data

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in QUESTION_TYPES:
            raise ValueError(f"unsupported question type {v!r}")
        return v

    @model_validator(mode="after")
    def _required(self) -> "GeneratedQuestion":
        if not self.question.strip():
            raise ValueError("question must not be empty")
        if not self.correct_answer.strip():
            raise ValueError("correctAnswer must not be empty")
        return self


@dataclass
class GenerationResult:
    ok: bool
    questions: List[Question] = field(default_factory=list)
    reason: Optional[str] = None


def strip_code_fence(raw: str) -> str:
    text = raw.strip()
    match = _FENCE.match(text)
    return match.group(1).strip() if match else text


def parse_generated_questions(raw: str, limit: Optional[int] = None) -> GenerationResult:
    """Validate a model reply as a JSON array of questions."""
    try:
        payload = json.loads(strip_code_fence(raw or ""))
    except json.JSONDecodeError as e:
        return GenerationResult(ok=False, reason=f"AI returned invalid JSON: {e.msg}")

    if not isinstance(payload, list):
        return GenerationResult(ok=False, reason="AI returned invalid response: expected a JSON array")
    if not payload:
        return GenerationResult(ok=False, reason="AI returned no questions")

    stamp = now_ms()
    questions: List[Question] = []
    for idx, item in enumerate(payload[:limit] if limit else payload):
        try:
            question = GeneratedQuestion.model_validate(item)
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ())) or "item"
            return GenerationResult(
                ok=False, reason=f"AI returned an invalid question at index {idx}: {where}: {first['msg']}"
            )
        if not question.id:
            question.id = f"q-{stamp}-{idx}"
        questions.append(Question.model_validate(question.model_dump()))

    return GenerationResult(ok=True, questions=questions)


class QuestionGenerator:
    """Builds the prompt, calls Gemini, and parses the reply."""

    def __init__(self, gemini: GeminiService, max_questions: int = 50):
        self.gemini = gemini
        self.max_questions = max_questions

    async def generate(
        self,
        exam: str,
        subject: str,
        difficulty: Any = "Medium",
        count: Any = 10,
        user_id: Optional[str] = None,
    ) -> GenerationResult:
        """
        Raises:
            GeminiError: the model could not be reached
        """
        difficulty = normalize_difficulty(difficulty)
        count = clamp_count(count, maximum=self.max_questions)
        prompt = build_generation_prompt(exam, subject, difficulty, count)

        raw = await self.gemini.generate(prompt, user_id=user_id)
        result = parse_generated_questions(raw, limit=count)
        if not result.ok:
            logger.error(f"❌ Question generation for {exam}/{subject} failed: {result.reason}")
        else:
            logger.info(f"✅ Generated {len(result.questions)} {difficulty} questions for {exam}/{subject}")
        return result
