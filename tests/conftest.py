import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_app.db")

from quizapp.db import init_db  # noqa: E402
from quizapp.quiz import create_quiz  # noqa: E402
from quizapp.users import create_user  # noqa: E402


@pytest.fixture(scope='session', autouse=True)
def reset_db():
    # Ensure a clean DB for the test session
    dbfile = os.path.join(os.getcwd(), 'test_app.db')
    try:
        os.remove(dbfile)
    except FileNotFoundError:
        pass
    init_db()
    yield
    try:
        os.remove(dbfile)
    except OSError:
        pass


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.notified = []

    def notify_completion(self, attempt):
        self.notified.append(attempt)
        if self.fail:
            raise RuntimeError("smtp down")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def participant():
    return create_user(f"p_{uuid.uuid4().hex[:10]}@example.com", full_name="Pat Participant")


@pytest.fixture
def single_question_quiz():
    """4 options, correct index 1, 10 points, 30 minute limit."""
    return create_quiz(
        'Single Question', None,
        [{'text': 'Q1', 'options': ['a', 'b', 'c', 'd'], 'correct_index': 1, 'points': 10}],
        time_limit=30,
    )
