from typing import Optional, List, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Index
from datetime import datetime, timezone
import json


def now_utc():
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_column(nullable: bool = True) -> Column:
    return Column(DateTime(timezone=True), nullable=nullable)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    full_name: Optional[str] = None
    role: str = Field(default="participant")  # admin|participant
    created_at: datetime = Field(default_factory=now_utc, sa_column=_utc_column(nullable=False))


class Quiz(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    time_limit: Optional[int] = None  # minutes; None or <= 0 means untimed
    difficulty: str = Field(default="medium")  # easy|medium|hard
    author_id: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=now_utc, sa_column=_utc_column(nullable=False))


class Question(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key="quiz.id", index=True)
    text: str
    options: Optional[str] = None  # JSON list of option strings
    correct_index: Optional[int] = None
    points: Optional[int] = Field(default=1)
    explanation: Optional[str] = None

    def get_options(self) -> List[str]:
        if not self.options:
            return []
        return list(json.loads(self.options))


class Attempt(SQLModel, table=True):
    __table_args__ = (Index("ix_attempt_open_deadline", "completed_at", "expires_at"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key="quiz.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    answers: Optional[str] = None  # JSON: {question_id: option_index}
    per_question: Optional[str] = None  # JSON: list of {question_id, correct, points}
    score: Optional[float] = None
    earned_points: Optional[int] = None
    total_points: Optional[int] = None
    started_at: datetime = Field(default_factory=now_utc, sa_column=_utc_column(nullable=False))
    expires_at: Optional[datetime] = Field(default=None, sa_column=_utc_column())
    completed_at: Optional[datetime] = Field(default=None, sa_column=_utc_column())

    def get_answers(self) -> Dict[int, int]:
        if not self.answers:
            return {}
        return {int(k): v for k, v in json.loads(self.answers).items()}

    def get_per_question(self) -> List[Dict[str, Any]]:
        if not self.per_question:
            return []
        return json.loads(self.per_question)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = as_utc(now) if now is not None else now_utc()
        return now > as_utc(self.expires_at)


# Read-only views handed to grading; fully populated, no session attached.

class QuestionView(SQLModel):
    id: int
    text: str = ""
    options: List[str] = Field(default_factory=list)
    correct_index: Optional[int] = None
    points: int = 1


class QuizView(SQLModel):
    id: int
    title: str
    time_limit: Optional[int] = None
    questions: List[QuestionView] = Field(default_factory=list)

    def question_map(self) -> Dict[int, QuestionView]:
        return {q.id: q for q in self.questions}
