import json

import pytest

from examai.errors import ApiError, SessionFileError
from examai.models import ChatRequest
from examai.services.chat import build_study_prompt, detect_target_question

QUESTIONS = [
    {"id": "q1", "question": "What is 2+2?", "options": ["3", "4", "5", "6"], "correctAnswer": "B"},
    {"id": "q2", "question": "Capital of France?", "options": {"a": "Paris", "b": "Rome"}, "answer": "A"},
]


def session_doc(drive_resource, file_id):
    return json.loads(drive_resource.store[file_id]["content"].decode("utf-8"))


@pytest.fixture
def student(db):
    db.users.seed({"uid": "alice", "preferredExam": "JEE", "preferredSubject": "Physics"})


async def test_new_study_session_writes_file_and_pointer(ctx, db, drive_resource, gemini, student):
    reply = await ctx.chat.study_turn("alice", ChatRequest(message="explain q2", questions=QUESTIONS))

    assert reply.ok and reply.reply == "Sure, here is a hint."
    document = session_doc(drive_resource, reply.session_id)
    assert document["type"] == "study"
    assert document["exam"] == "JEE" and document["subject"] == "Physics"
    assert [(m["role"], m["text"]) for m in document["messages"]] == [
        ("user", "explain q2"),
        ("assistant", "Sure, here is a hint."),
    ]

    pointer = db.study_sessions.docs[0]
    assert pointer["sessionId"] == pointer["fileId"] == reply.session_id
    assert pointer["type"] == "study"
    assert pointer["fileName"].startswith("Study - Physics (")

    user = next(u for u in db.users.docs if u["uid"] == "alice")
    assert drive_resource.store[reply.session_id]["parents"] == [user["driveStudyFolder"]]

    prompt = gemini.prompts[0]
    assert 'study assistant for subject "Physics"' in prompt
    assert "Referenced Question 2:" in prompt
    assert "A) Paris" in prompt
    assert "Correct answer: A" in prompt


async def test_continuing_a_session_appends_both_turns(ctx, drive_resource, gemini, student):
    first = await ctx.chat.study_turn("alice", ChatRequest(message="hello"))
    gemini.replies.append("second answer")

    second = await ctx.chat.study_turn(
        "alice", ChatRequest(message="and then?", session_id=first.session_id)
    )

    assert second.session_id == first.session_id
    messages = session_doc(drive_resource, first.session_id)["messages"]
    assert [m["text"] for m in messages] == ["hello", "Sure, here is a hint.", "and then?", "second answer"]
    assert "Assistant: Sure, here is a hint." in gemini.prompts[1]
    assert "No referenced question detected" in gemini.prompts[1]


async def test_new_session_flag_ignores_session_id(ctx, db, student):
    first = await ctx.chat.study_turn("alice", ChatRequest(message="one"))
    second = await ctx.chat.study_turn(
        "alice", ChatRequest(message="two", session_id=first.session_id, new_session=True)
    )

    assert second.session_id != first.session_id
    assert len(db.study_sessions.docs) == 2


async def test_other_users_session_is_not_found(ctx, student):
    theirs = await ctx.chat.study_turn("bob", ChatRequest(message="mine"))

    with pytest.raises(ApiError) as exc:
        await ctx.chat.study_turn("alice", ChatRequest(message="peek", session_id=theirs.session_id))
    assert exc.value.status_code == 404


async def test_append_failure_surfaces(ctx, drive_resource, student):
    first = await ctx.chat.study_turn("alice", ChatRequest(message="hello"))
    drive_resource.fail_updates = True

    with pytest.raises(SessionFileError):
        await ctx.chat.study_turn("alice", ChatRequest(message="again", session_id=first.session_id))


async def test_study_reply_is_limited_to_ten_lines(ctx, gemini, student):
    gemini.replies.append("\n".join(f"line {i}" for i in range(15)) + "\n\n")

    reply = await ctx.chat.study_turn("alice", ChatRequest(message="long please"))

    assert reply.reply.splitlines() == [f"line {i}" for i in range(10)]


async def test_mentor_turns(ctx, db, drive_resource, gemini):
    first = await ctx.chat.mentor_turn("carol", ChatRequest(message="feeling stuck"))
    await ctx.chat.mentor_turn("carol", ChatRequest(message="thanks", session_id=first.session_id))

    assert session_doc(drive_resource, first.session_id)["type"] == "mentor"
    assert len(session_doc(drive_resource, first.session_id)["messages"]) == 4
    assert db.mentor_sessions.docs[0]["fileName"].startswith("Mentor Session (")
    assert 'User: "thanks"' in gemini.prompts[1]


async def test_history_listing_and_loading(ctx, student):
    first = await ctx.chat.study_turn("alice", ChatRequest(message="hello"))

    listed = await ctx.chat.list_sessions("alice", "study")
    assert [s["id"] for s in listed] == [first.session_id]
    assert await ctx.chat.list_sessions("alice", "mentor") == []

    loaded = await ctx.chat.load_session("alice", "study", first.session_id)
    assert loaded["id"] == first.session_id
    assert len(loaded["messages"]) == 2

    with pytest.raises(ApiError):
        await ctx.chat.load_session("bob", "study", first.session_id)


@pytest.mark.parametrize(
    "message,expected",
    [("explain q1", 1), ("Question 2 please", 2), ("solve 2", 2), ("what is life", None), ("q9", None)],
)
def test_detect_target_question(message, expected):
    target = detect_target_question(message, QUESTIONS)
    assert (target or {}).get("number") == expected


def test_detect_without_questions():
    assert detect_target_question("q1", None) is None
    assert detect_target_question("q1", []) is None


def test_study_prompt_uses_history_window():
    history = [{"role": "user", "text": f"m{i}"} for i in range(10)]
    prompt = build_study_prompt("hi", "GATE", "OS", None, history, window=3)

    assert "User: m9" in prompt and "User: m7" in prompt
    assert "User: m6" not in prompt
