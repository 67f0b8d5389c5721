from typing import List, Dict, Any, Optional
from quizapp.db import get_session
from quizapp.errors import QuizNotFoundError
from quizapp.models import Quiz, Question, QuizView, QuestionView
from sqlmodel import Session, select
import json


def create_quiz(title: str, author_id: Optional[int], questions: List[Dict[str, Any]],
                time_limit: Optional[int] = None, description: Optional[str] = None,
                difficulty: str = "medium"):
    """questions: list of dicts: {text, options(list), correct_index, points(optional), explanation(optional)}
    time_limit is in minutes.
    """
    for q in questions:
        points = q.get('points', 1)
        if points is not None and (isinstance(points, bool) or not isinstance(points, int) or points <= 0):
            raise ValueError(f"Question points must be a positive integer, got {points!r}")

    with get_session() as session:
        quiz = Quiz(
            title=title,
            description=description,
            time_limit=time_limit,
            difficulty=difficulty,
            author_id=author_id,
        )
        session.add(quiz)
        session.commit()
        session.refresh(quiz)

        for q in questions:
            question = Question(
                quiz_id=quiz.id,
                text=q.get('text'),
                options=json.dumps(list(q.get('options') or [])),
                correct_index=q.get('correct_index'),
                points=q.get('points', 1),
                explanation=q.get('explanation'),
            )
            session.add(question)
        session.commit()

    return quiz


def get_quiz(quiz_id: int):
    with get_session() as session:
        return session.get(Quiz, quiz_id)


def list_quizzes():
    with get_session() as session:
        return list(session.exec(select(Quiz).order_by(Quiz.id)))


def get_questions_for_quiz(quiz_id: int):
    with get_session() as session:
        q = select(Question).where(Question.quiz_id == quiz_id).order_by(Question.id)
        return list(session.exec(q))


def _to_view(quiz: Quiz, questions: List[Question]) -> QuizView:
    return QuizView(
        id=quiz.id,
        title=quiz.title,
        time_limit=quiz.time_limit,
        questions=[
            QuestionView(
                id=q.id,
                text=q.text or "",
                options=q.get_options(),
                correct_index=q.correct_index,
                points=q.points if q.points is not None else 1,
            )
            for q in questions
        ],
    )


def load_quiz(quiz_id: int, session: Optional[Session] = None) -> QuizView:
    """Return the quiz with its ordered questions as a detached view.

    Pass ``session`` to read inside a caller's unit of work.
    """
    if session is None:
        with get_session() as own:
            return load_quiz(quiz_id, session=own)

    quiz = session.get(Quiz, quiz_id)
    if not quiz:
        raise QuizNotFoundError(f"Quiz not found: {quiz_id}")
    questions = list(session.exec(
        select(Question).where(Question.quiz_id == quiz_id).order_by(Question.id)
    ))
    return _to_view(quiz, questions)
