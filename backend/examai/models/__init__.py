"""Pydantic models for requests, responses and stored documents.

Wire and stored documents use camelCase keys (the frontend contract); Python
code uses snake_case attributes through the camel alias generator.
"""

import re
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils import as_text, coerce_marks


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


QUESTION_TYPES = ("MCQ", "MSQ", "NAT")

_OPTION_LABEL = re.compile(r"^\(?([A-Za-z])[\).:]\s+")


def normalize_options(value: Any) -> Optional[Dict[str, str]]:
    """
    Options as a letter -> text mapping.

    A plain list is lettered A, B, C... and a leading "A)" or "A." label that
    repeats the letter is dropped from the text.
    """
    if isinstance(value, dict):
        return {as_text(k).strip().upper(): as_text(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        options = {}
        for i, item in enumerate(value):
            letter = chr(65 + i)
            text = as_text(item).strip()
            match = _OPTION_LABEL.match(text)
            if match and match.group(1).upper() == letter:
                text = text[match.end():]
            options[letter] = text
        return options
    return None


# ============ QUESTION ============
class Question(CamelModel):
    id: str = ""
    type: str = "MCQ"
    marks: Union[int, float] = 1
    question: str = ""
    options: Optional[Dict[str, str]] = None
    correct_answer: str = ""
    explanation: str = ""

    @field_validator("id", "question", "correct_answer", "explanation", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return as_text(v).strip().upper() or "MCQ"

    @field_validator("marks", mode="before")
    @classmethod
    def _marks(cls, v: Any) -> Union[int, float]:
        return coerce_marks(v)

    @field_validator("options", mode="before")
    @classmethod
    def _options(cls, v: Any) -> Optional[Dict[str, str]]:
        return normalize_options(v)


# ============ GRADING ============
class GradingResult(CamelModel):
    id: str
    question: str
    correct_answer: str
    user_answer: Optional[Any] = None
    is_correct: bool
    marks: Union[int, float]
    explanation: str = ""


class ScoreSummary(CamelModel):
    obtained: Union[int, float] = 0
    total_marks: Union[int, float] = 0
    correct_count: int = 0


class AttemptPointer(CamelModel):
    """Stored per attempt; the per-question detail lives only in the transcript file."""
    uid: str
    attempt_id: str
    file_id: str
    file_url: str
    file_name: str
    created_at: str
    type: Literal["exam"] = "exam"
    score: ScoreSummary


class ExamSubmission(CamelModel):
    exam: Optional[str] = None
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    questions: List[Question]
    answers: Optional[Dict[str, Any]] = None


# ============ CHAT SESSIONS ============
class SessionMessage(CamelModel):
    role: Literal["user", "assistant"]
    text: str
    ts: Optional[int] = None


class SessionPointer(CamelModel):
    uid: str
    session_id: str
    file_id: str
    file_name: str
    created_at: str
    type: Literal["study", "mentor"]


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    new_session: bool = False
    questions: Optional[List[Dict[str, Any]]] = None


class ChatReply(CamelModel):
    ok: bool = True
    reply: str
    session_id: str


# ============ GENERATION ============
class GenerateQuestionsRequest(CamelModel):
    exam: Optional[str] = None
    subject: str = ""
    difficulty: str = "Medium"
    num_questions: Any = 10


class PracticeRequest(CamelModel):
    exam: str = "GATE"
    subject: str = ""
    difficulty: str = "Easy"
    count: Any = 10


class GeminiChatRequest(CamelModel):
    prompt: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    model: Optional[str] = None


# ============ USERS ============
class User(CamelModel):
    uid: str
    email: str = ""
    full_name: str = ""
    role: str = "user"
    photo_url: Optional[str] = Field(None, alias="photoURL")
    background_url: Optional[str] = Field(None, alias="backgroundURL")
    preferred_exam: Optional[str] = None
    preferred_subject: Optional[str] = None
    drive_root_id: Optional[str] = None
    is_active: bool = True


class RegisterRequest(CamelModel):
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str


class LoginRequest(CamelModel):
    id_token: str = Field(..., min_length=1)


class GoogleLoginRequest(CamelModel):
    token: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    background_url: Optional[str] = Field(None, alias="backgroundURL")
    achievements: Optional[List[Any]] = None
    preferred_exam: Optional[str] = None
    preferred_subject: Optional[str] = None


class CreateAdminRequest(CamelModel):
    uid: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)


class RevokeAdminRequest(CamelModel):
    soft_delete: bool = True


# ============ DRIVE ============
class UserFolders(BaseModel):
    root: str
    users: str
    user: str
    profile: str
    background: str
    uploads: str
    history: str
    mentor: str
    study: str
    ai_sessions: str


class UploadedFile(BaseModel):
    file_id: str
    url: str


__all__ = [
    "CamelModel",
    "QUESTION_TYPES",
    "normalize_options",
    # Questions and grading
    "Question",
    "GradingResult",
    "ScoreSummary",
    "AttemptPointer",
    "ExamSubmission",
    # Chat
    "SessionMessage",
    "SessionPointer",
    "ChatRequest",
    "ChatReply",
    # Generation
    "GenerateQuestionsRequest",
    "PracticeRequest",
    "GeminiChatRequest",
    # Users
    "User",
    "RegisterRequest",
    "LoginRequest",
    "GoogleLoginRequest",
    "ProfileUpdate",
    "CreateAdminRequest",
    "RevokeAdminRequest",
    # Drive
    "UserFolders",
    "UploadedFile",
]
