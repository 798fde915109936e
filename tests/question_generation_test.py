import json

import pytest

from examai.errors import GeminiError
from examai.services.question_generation import (
    build_generation_prompt,
    clamp_count,
    normalize_difficulty,
    parse_generated_questions,
    strip_code_fence,
)

SAMPLE = [
    {
        "id": "q1",
        "type": "MCQ",
        "marks": 1,
        "question": "Which gate is universal?",
        "options": {"A": "AND", "B": "NAND", "C": "OR", "D": "XOR"},
        "correctAnswer": "B",
        "explanation": "NAND alone builds every gate.",
    },
    {
        "type": "NAT",
        "marks": 2,
        "question": "How many bits in a byte?",
        "answer": 8,
    },
]


def test_fenced_json_is_accepted():
    raw = "```json\n" + json.dumps(SAMPLE) + "\n```"
    result = parse_generated_questions(raw)

    assert result.ok
    assert [q.id for q in result.questions][0] == "q1"
    assert result.questions[0].options == {"A": "AND", "B": "NAND", "C": "OR", "D": "XOR"}


def test_answer_alias_and_generated_ids():
    result = parse_generated_questions(json.dumps(SAMPLE))
    nat = result.questions[1]

    assert nat.correct_answer == "8"
    assert nat.marks == 2
    assert nat.options is None
    assert nat.id.startswith("q-") and nat.id.endswith("-1")


def test_list_options_are_lettered():
    item = {"type": "MCQ", "question": "Pick", "options": ["A) red", "green", "C. blue"], "correctAnswer": "a"}
    result = parse_generated_questions(json.dumps([item]))

    assert result.questions[0].options == {"A": "red", "B": "green", "C": "blue"}


def test_limit_truncates_extra_items():
    result = parse_generated_questions(json.dumps(SAMPLE), limit=1)
    assert len(result.questions) == 1


@pytest.mark.parametrize(
    "raw,reason",
    [
        ("Here are your questions!", "invalid JSON"),
        ('{"questions": []}', "expected a JSON array"),
        ("[]", "no questions"),
        ('[{"type": "ESSAY", "question": "Why?", "correctAnswer": "x"}]', "index 0"),
        ('[{"type": "MCQ", "question": "No answer"}]', "index 0"),
        ('[1, 2]', "index 0"),
        ("", "invalid JSON"),
    ],
)
def test_rejected_replies(raw, reason):
    result = parse_generated_questions(raw)
    assert not result.ok
    assert result.questions == []
    assert reason in result.reason


def test_strip_code_fence_leaves_plain_text():
    assert strip_code_fence('  [1]  ') == "[1]"
    assert strip_code_fence("```\n[1]\n```") == "[1]"


@pytest.mark.parametrize(
    "value,expected",
    [(None, 10), ("abc", 10), (0, 10), (-3, 1), (5, 5), ("7", 7), (200, 50), (float("inf"), 10)],
)
def test_clamp_count(value, expected):
    assert clamp_count(value) == expected


def test_normalize_difficulty():
    assert normalize_difficulty("hard") == "Hard"
    assert normalize_difficulty("impossible") == "Medium"
    assert normalize_difficulty(None) == "Medium"


def test_prompt_names_exam_and_count():
    prompt = build_generation_prompt("gate", "Algorithms", "Hard", 5)

    assert "Exam: GATE (technical, engineering)" in prompt
    assert "Subject: Algorithms" in prompt
    assert "Return exactly 5 items in the array." in prompt
    assert "Advanced / above exam level" in prompt


async def test_generator_clamps_and_parses(ctx, gemini):
    gemini.replies.append(json.dumps(SAMPLE * 3))

    result = await ctx.questions.generate("GATE", "Digital Logic", "easy", 4, user_id="alice")

    assert result.ok
    assert len(result.questions) == 4
    assert "Number of questions: 4" in gemini.prompts[0]
    assert "Difficulty: Easy" in gemini.prompts[0]


async def test_generator_propagates_gemini_errors(ctx, gemini):
    gemini.error = GeminiError("Gemini request failed: timeout")
    with pytest.raises(GeminiError):
        await ctx.questions.generate("GATE", "Networks")
