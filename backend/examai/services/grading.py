"""
Objective grading for generated practice tests.

Each question is judged on its own (binary credit, no partial marks) and the
results are folded into a score summary. Nothing here touches I/O and nothing
here raises: malformed answers are coerced to text and simply graded wrong.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models import GradingResult, Question, ScoreSummary
from ..utils import as_text


def _letters(value: Any) -> List[str]:
    return sorted(token.strip().upper() for token in as_text(value).split(","))


def is_answer_correct(question: Question, submitted: Any) -> bool:
    """Compare one submitted answer with the canonical answer for its type."""
    correct = question.correct_answer
    if question.type == "NAT":
        # case-sensitive, no numeric tolerance
        return correct.strip() == as_text(submitted).strip()
    if question.type == "MSQ":
        # duplicates survive the sort, so "A,A,B" != "A,B"
        return _letters(correct) == _letters(submitted)
    return correct.strip().upper() == as_text(submitted).strip().upper()


def grade_question(question: Question, submitted: Any) -> GradingResult:
    return GradingResult(
        id=question.id,
        question=question.question,
        correct_answer=question.correct_answer,
        user_answer=submitted,
        is_correct=is_answer_correct(question, submitted),
        marks=question.marks,
        explanation=question.explanation,
    )


def score_attempt(
    questions: List[Question],
    answers: Optional[Mapping[str, Any]] = None,
) -> Tuple[ScoreSummary, List[GradingResult]]:
    """
    Grade every question in order and total the marks.

    Args:
        questions: Questions as presented to the user
        answers: Question id -> submitted value; missing ids grade as unanswered

    Returns:
        (score summary, per-question results in input order)
    """
    answers = answers or {}
    details: List[GradingResult] = []
    obtained: float = 0
    total: float = 0
    correct_count = 0

    for question in questions:
        total += question.marks
        result = grade_question(question, answers.get(question.id))
        if result.is_correct:
            correct_count += 1
            obtained += question.marks
        details.append(result)

    score = ScoreSummary(obtained=obtained, total_marks=total, correct_count=correct_count)
    return score, details


def summarize(score: ScoreSummary) -> Dict[str, Any]:
    """Percentage view of a score, used in the transcript header."""
    percent = (score.obtained / score.total_marks * 100) if score.total_marks else 0
    return {**score.to_doc(), "percentage": round(percent, 2)}
