import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Any

from sqlalchemy import update
from sqlmodel import select

from quizapp.db import get_session
from quizapp.errors import AttemptConflictError, AttemptNotFoundError, UserNotFoundError
from quizapp.grading import grade, validate_answers
from quizapp.models import Attempt, Question, Quiz, User, now_utc, as_utc
from quizapp.notifications import LoggingNotifier
from quizapp.quiz import load_quiz


class AttemptService:
    """Lifecycle of a timed quiz attempt: start, save progress, submit and grade.

    An attempt is graded at most once. Completion is written with a
    compare-and-swap on ``completed_at IS NULL`` so a user submission racing
    the expiry sweeper produces exactly one winner; the loser gets
    ``AttemptConflictError``.
    """

    def __init__(self, session_factory: Callable = get_session, notifier=None,
                 clock: Callable[[], datetime] = now_utc, logger: Optional[logging.Logger] = None):
        self.session_factory = session_factory
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def start_attempt(self, user_id: int, quiz_id: int) -> Attempt:
        with self.session_factory() as session:
            if not session.get(User, user_id):
                raise UserNotFoundError(f"User not found: {user_id}")
            quiz = load_quiz(quiz_id, session=session)

            started_at = self.clock()
            expires_at = None
            if quiz.time_limit is not None and quiz.time_limit > 0:
                expires_at = started_at + timedelta(minutes=quiz.time_limit)

            attempt = Attempt(
                quiz_id=quiz.id,
                user_id=user_id,
                answers=json.dumps({}),
                started_at=started_at,
                expires_at=expires_at,
            )
            session.add(attempt)
            session.commit()
            session.refresh(attempt)

        self.logger.info("Started attempt %s (user %s, quiz %s, expires %s)",
                         attempt.id, user_id, quiz_id, attempt.expires_at)
        return attempt

    def save_answers(self, attempt_id: int, answers: Optional[Mapping[Any, Any]]) -> Attempt:
        """Store in-progress answers without grading them."""
        with self.session_factory() as session:
            attempt = self._load(session, attempt_id)
            if attempt.is_completed:
                raise AttemptConflictError(f"Attempt {attempt_id} is already completed")
            quiz = load_quiz(attempt.quiz_id, session=session)
            validated = validate_answers(quiz, answers)

            stmt = (
                update(Attempt)
                .where(Attempt.id == attempt_id, Attempt.completed_at.is_(None))
                .values(answers=json.dumps(validated))
            )
            if session.exec(stmt).rowcount == 0:
                session.rollback()
                raise AttemptConflictError(f"Attempt {attempt_id} was completed concurrently")
            session.commit()
            session.refresh(attempt)
        return attempt

    def submit(self, attempt_id: int, answers: Optional[Mapping[Any, Any]]) -> Attempt:
        """Validate, grade and complete an attempt, then notify.

        Expiry does not block submission: whatever arrives is graded.
        """
        with self.session_factory() as session:
            attempt = self._load(session, attempt_id)
            if attempt.is_completed:
                raise AttemptConflictError(f"Attempt {attempt_id} is already completed")

            now = self.clock()
            if attempt.is_expired(now):
                self.logger.warning("Attempt %s expired at %s; grading what was submitted",
                                    attempt_id, attempt.expires_at)

            quiz = load_quiz(attempt.quiz_id, session=session)
            validated = validate_answers(quiz, answers)
            result = grade(quiz, validated)

            stmt = (
                update(Attempt)
                .where(Attempt.id == attempt_id, Attempt.completed_at.is_(None))
                .values(
                    answers=json.dumps(validated),
                    per_question=json.dumps(result.per_question),
                    score=result.score,
                    earned_points=result.earned_points,
                    total_points=result.total_points,
                    completed_at=now,
                )
            )
            if session.exec(stmt).rowcount == 0:
                session.rollback()
                raise AttemptConflictError(f"Attempt {attempt_id} was completed concurrently")
            session.commit()
            session.refresh(attempt)

        self.logger.info("Attempt %s graded: %s/%s points (%.2f%%)",
                         attempt_id, result.earned_points, result.total_points, result.score)
        self._notify(attempt)
        return attempt

    def get_attempt(self, attempt_id: int) -> Attempt:
        with self.session_factory() as session:
            return self._load(session, attempt_id)

    def get_attempts_for_user(self, user_id: int) -> List[Attempt]:
        with self.session_factory() as session:
            q = select(Attempt).where(Attempt.user_id == user_id).order_by(
                Attempt.started_at.desc(), Attempt.id.desc()
            )
            return list(session.exec(q))

    def get_attempt_detail(self, attempt_id: int) -> Dict[str, Any]:
        """Return attempt details including question texts and per-question correctness"""
        with self.session_factory() as session:
            at = self._load(session, attempt_id)
            quiz = session.get(Quiz, at.quiz_id)
            answers = at.get_answers()
            detailed = []
            for pq in at.get_per_question():
                qobj = session.get(Question, pq.get('question_id'))
                detailed.append({
                    'question_id': pq.get('question_id'),
                    'question_text': qobj.text if qobj else '',
                    'selected_index': answers.get(pq.get('question_id')),
                    'correct_index': qobj.correct_index if qobj else None,
                    'explanation': qobj.explanation if qobj else None,
                    'correct': pq.get('correct'),
                    'points': pq.get('points'),
                })
            return {
                'attempt_id': at.id,
                'quiz_id': at.quiz_id,
                'quiz_title': quiz.title if quiz else '',
                'user_id': at.user_id,
                'answers': answers,
                'per_question': detailed,
                'score': at.score,
                'earned_points': at.earned_points,
                'total_points': at.total_points,
                'started_at': as_utc(at.started_at).isoformat() if at.started_at else None,
                'expires_at': as_utc(at.expires_at).isoformat() if at.expires_at else None,
                'completed_at': as_utc(at.completed_at).isoformat() if at.completed_at else None,
            }

    def find_expired_attempts(self, now: Optional[datetime] = None) -> List[Attempt]:
        """Open attempts whose deadline has passed."""
        now = now or self.clock()
        with self.session_factory() as session:
            q = select(Attempt).where(
                Attempt.completed_at.is_(None),
                Attempt.expires_at.is_not(None),
            )
            return [a for a in session.exec(q) if a.is_expired(now)]

    def _load(self, session, attempt_id: int) -> Attempt:
        attempt = session.get(Attempt, attempt_id)
        if not attempt:
            raise AttemptNotFoundError(f"Attempt not found: {attempt_id}")
        return attempt

    def _notify(self, attempt: Attempt) -> None:
        try:
            self.notifier.notify_completion(attempt)
        except Exception:
            self.logger.exception("Result notification failed for attempt %s; grading is unaffected",
                                  attempt.id)
