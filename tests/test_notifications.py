from datetime import datetime, timezone

import pytest

from quizapp.attempts import AttemptService
from quizapp.models import Attempt, User
from quizapp.notifications import (
    BackgroundNotifier,
    EmailNotifier,
    LoggingNotifier,
    build_notifier,
    performance_feedback,
)
from quizapp.users import create_user


class _FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.tls = False
        self.login_args = None
        self.sent = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, user, password):
        self.login_args = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    _FakeSMTP.instances = []
    monkeypatch.setattr("quizapp.notifications.smtplib.SMTP", _FakeSMTP)
    return _FakeSMTP


@pytest.mark.parametrize('score, expected', [
    (100.0, "Outstanding"),
    (85.0, "Excellent"),
    (70.0, "Good job"),
    (65.5, "Not bad"),
    (50.0, "You passed"),
    (12.0, "Don't give up"),
])
def test_performance_feedback_bands(score, expected):
    assert performance_feedback(score).startswith(expected)


def test_build_message_contains_result():
    attempt = Attempt(id=5, quiz_id=1, user_id=1, score=66.666, earned_points=10, total_points=15,
                      completed_at=datetime(2030, 1, 1, 9, 30, tzinfo=timezone.utc))
    user = User(id=1, email='ada@example.com', full_name='Ada')
    msg = EmailNotifier('smtp.test').build_message(attempt, user, 'Algebra')

    assert msg['To'] == 'ada@example.com'
    assert msg['Subject'] == 'Quiz Results: Algebra - Score: 66.67%'
    body = msg.get_content()
    assert 'Dear Ada' in body
    assert 'Points: 10/15' in body
    assert '01 Jan 2030 at 09:30' in body
    assert 'Not bad!' in body


def test_email_sent_on_submit(fake_smtp, clock, single_question_quiz):
    user = create_user('mail_me@example.com', full_name='Mail Me')
    email = EmailNotifier('smtp.test', 2525, username='bot', password='pw', sender='quiz@example.com')
    service = AttemptService(clock=clock, notifier=email)
    attempt = service.start_attempt(user.id, single_question_quiz.id)
    service.submit(attempt.id, {})

    [smtp] = fake_smtp.instances
    assert (smtp.host, smtp.port) == ('smtp.test', 2525)
    assert smtp.tls is True
    assert smtp.login_args == ('bot', 'pw')
    [msg] = smtp.sent
    assert msg['To'] == 'mail_me@example.com'
    assert msg['Subject'] == 'Quiz Results: Single Question - Score: 0.00%'


def test_no_email_for_user_without_address(fake_smtp, clock, single_question_quiz):
    user = create_user('', full_name='No Address')
    service = AttemptService(clock=clock, notifier=EmailNotifier('smtp.test'))
    attempt = service.start_attempt(user.id, single_question_quiz.id)
    service.submit(attempt.id, {})

    assert fake_smtp.instances == []


def test_no_email_for_open_attempt(fake_smtp):
    EmailNotifier('smtp.test').notify_completion(Attempt(id=1, quiz_id=1, user_id=1))
    assert fake_smtp.instances == []


def test_background_notifier_runs_inner_and_logs_failures(notifier, failing_notifier, caplog):
    attempt = Attempt(id=42, quiz_id=1, user_id=1, score=50.0)

    ok = BackgroundNotifier(notifier)
    ok.notify_completion(attempt).result(timeout=5)
    ok.shutdown()
    assert notifier.notified == [attempt]

    bad = BackgroundNotifier(failing_notifier)
    future = bad.notify_completion(attempt)
    bad.shutdown(wait=True)
    assert isinstance(future.exception(), RuntimeError)
    assert 'Background notification failed for attempt 42' in caplog.text
    [record] = [r for r in caplog.records if 'Background notification failed' in r.getMessage()]
    assert record.exc_info is not None and record.exc_info[0] is RuntimeError


def test_build_notifier_without_smtp_host_logs_only(monkeypatch):
    monkeypatch.delenv("SMTP_HOST", raising=False)
    assert isinstance(build_notifier(), LoggingNotifier)


def test_build_notifier_from_env(monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "mail.example.com")
    monkeypatch.setenv("SMTP_PORT", "2525")
    monkeypatch.setenv("SMTP_STARTTLS", "false")
    monkeypatch.setenv("SMTP_FROM", "quiz@example.com")
    notifier = build_notifier()
    try:
        assert isinstance(notifier, BackgroundNotifier)
        inner = notifier.inner
        assert (inner.smtp_host, inner.smtp_port) == ("mail.example.com", 2525)
        assert inner.use_tls is False
        assert inner.sender == "quiz@example.com"
    finally:
        notifier.shutdown()
