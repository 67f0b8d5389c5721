"""Answer validation and points-weighted scoring for a quiz attempt.

Both functions work on a detached ``QuizView`` and never touch the database.
Bad answers are dropped rather than rejected, so a single malformed entry
never fails a whole submission.
"""
import logging
from typing import Dict, Any, List, Mapping, NamedTuple, Optional

from quizapp.models import QuizView, QuestionView

logger = logging.getLogger(__name__)


class GradeResult(NamedTuple):
    earned_points: int
    total_points: int
    score: float
    per_question: List[Dict[str, Any]]


def _as_int(value) -> Optional[int]:
    """Read an id or option index; anything that is not exactly an integer is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _points(question: QuestionView) -> int:
    # rows written before points were validated may hold 0 or negatives
    if question.points is None or question.points <= 0:
        return 1
    return question.points


def _valid_index(question: QuestionView, index: Optional[int]) -> bool:
    return index is not None and 0 <= index < len(question.options)


def validate_answers(quiz: QuizView, answers: Optional[Mapping[Any, Any]]) -> Dict[int, int]:
    """Keep only answers naming a question of ``quiz`` with an in-range option index."""
    questions = quiz.question_map()
    validated: Dict[int, int] = {}
    for raw_qid, raw_index in (answers or {}).items():
        qid = _as_int(raw_qid)
        question = questions.get(qid) if qid is not None else None
        if question is None:
            logger.debug("Dropping answer for unknown question %r (quiz %s)", raw_qid, quiz.id)
            continue
        index = _as_int(raw_index)
        if not _valid_index(question, index):
            logger.debug("Dropping invalid answer %r for question %s", raw_index, qid)
            continue
        validated[qid] = index
    return validated


def grade(quiz: QuizView, answers: Mapping[int, int]) -> GradeResult:
    """Score every question of the quiz against the validated ``answers``.

    A question whose stored correct index is missing or out of range can
    never be answered correctly. An empty quiz scores 0.
    """
    earned = 0
    total = 0
    per_q = []
    for q in quiz.questions:
        points = _points(q)
        total += points
        selected = answers.get(q.id)
        correct = _valid_index(q, q.correct_index) and selected == q.correct_index
        if correct:
            earned += points
        per_q.append({'question_id': q.id, 'correct': correct, 'points': points})

    score = (earned / total) * 100 if total > 0 else 0.0
    return GradeResult(earned_points=earned, total_points=total, score=score, per_question=per_q)
