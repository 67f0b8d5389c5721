from datetime import datetime, timedelta, timezone

from quizapp.db import get_session
from quizapp.models import Attempt, Quiz, User, as_utc


def test_datetime_fields_are_timezone_aware():
    with get_session() as s:
        user = User(email='tz_user@example.com', full_name='TZ')
        s.add(user)
        s.flush()  # ensure defaults applied but before DB roundtrip
        # in-memory default should be timezone-aware
        assert user.created_at.tzinfo is not None and user.created_at.tzinfo == timezone.utc
        s.commit()

        quiz = Quiz(title='TZ Quiz', author_id=user.id, time_limit=10)
        s.add(quiz)
        s.flush()
        assert quiz.created_at.tzinfo == timezone.utc
        s.commit()

        attempt = Attempt(quiz_id=quiz.id, user_id=user.id)
        s.add(attempt)
        s.flush()
        assert (
            attempt.started_at is not None and attempt.started_at.tzinfo is not None
            and attempt.started_at.tzinfo == timezone.utc
        )
        s.commit()
        attempt_id = attempt.id

    with get_session() as s:
        reloaded = s.get(Attempt, attempt_id)
        assert as_utc(reloaded.started_at).tzinfo == timezone.utc


def test_as_utc_normalises_naive_and_offset_values():
    naive = datetime(2030, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    plus_two = datetime(2030, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(plus_two).tzinfo == timezone.utc
    assert as_utc(plus_two).hour == 12
    assert as_utc(None) is None


def test_expiry_with_naive_stored_deadline():
    attempt = Attempt(quiz_id=1, user_id=1, expires_at=datetime(2030, 1, 1, 12, 0))
    assert not attempt.is_expired(datetime(2030, 1, 1, 11, 59, tzinfo=timezone.utc))
    assert attempt.is_expired(datetime(2030, 1, 1, 12, 1, tzinfo=timezone.utc))
    assert not Attempt(quiz_id=1, user_id=1).is_expired()
