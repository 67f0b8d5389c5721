import logging
import os
import smtplib
from concurrent.futures import ThreadPoolExecutor
from email.message import EmailMessage
from typing import Callable, Optional

from quizapp.db import get_session
from quizapp.models import Attempt, Quiz, User, as_utc

logger = logging.getLogger(__name__)


def performance_feedback(score: float) -> str:
    if score >= 90:
        return "Outstanding! You've mastered this topic!"
    if score >= 80:
        return "Excellent work! You have a strong understanding."
    if score >= 70:
        return "Good job! You're on the right track."
    if score >= 60:
        return "Not bad! Keep practicing to improve."
    if score >= 50:
        return "You passed! Review the material and try again."
    return "Don't give up! Review the material and retake the quiz."


class LoggingNotifier:
    """Writes the result to the log; used when no mail server is configured."""

    def notify_completion(self, attempt: Attempt) -> None:
        logger.info("Attempt %s completed by user %s: score %.2f%% (%s/%s points)",
                    attempt.id, attempt.user_id, attempt.score or 0.0,
                    attempt.earned_points, attempt.total_points)


class EmailNotifier:
    """Sends a plain-text quiz result email over SMTP.

    Raises on SMTP failure; callers decide whether that matters.
    """

    def __init__(self, smtp_host: str, smtp_port: int = 587, username: Optional[str] = None,
                 password: Optional[str] = None, sender: str = "no-reply@quizapp.local",
                 use_tls: bool = True, session_factory: Callable = get_session, timeout: float = 10.0):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.session_factory = session_factory
        self.timeout = timeout

    def build_message(self, attempt: Attempt, user: User, quiz_title: str) -> EmailMessage:
        score = attempt.score or 0.0
        completed = as_utc(attempt.completed_at)
        name = user.full_name or user.email

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = user.email
        msg["Subject"] = f"Quiz Results: {quiz_title} - Score: {score:.2f}%"
        msg.set_content(
            f"Dear {name},\n\n"
            f"You have completed the quiz: {quiz_title}\n"
            f"Your Score: {score:.2f}%\n"
            f"Points: {attempt.earned_points}/{attempt.total_points}\n"
            f"Completed on: {completed.strftime('%d %b %Y at %H:%M')} UTC\n\n"
            f"{performance_feedback(score)}\n\n"
            "Thank you for participating!\n\n"
            "Best regards,\nQuizApp Team\n"
        )
        return msg

    def notify_completion(self, attempt: Attempt) -> None:
        if attempt.completed_at is None:
            logger.warning("Not sending results for attempt %s: not completed", attempt.id)
            return
        with self.session_factory() as session:
            user = session.get(User, attempt.user_id)
            quiz = session.get(Quiz, attempt.quiz_id)
        if not user or not (user.email or "").strip():
            logger.warning("Not sending results for attempt %s: user has no email", attempt.id)
            return

        msg = self.build_message(attempt, user, quiz.title if quiz else "Quiz")
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)
        logger.info("Quiz results email sent to %s for attempt %s", user.email, attempt.id)


class BackgroundNotifier:
    """Runs another notifier on a worker pool so submission never waits on it."""

    def __init__(self, inner, max_workers: int = 2):
        self.inner = inner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def notify_completion(self, attempt: Attempt):
        future = self._executor.submit(self.inner.notify_completion, attempt)
        future.add_done_callback(lambda f: self._log_failure(f, attempt.id))
        return future

    @staticmethod
    def _log_failure(future, attempt_id) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Background notification failed for attempt %s: %s", attempt_id, exc, exc_info=exc)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def build_notifier():
    host = (os.getenv("SMTP_HOST") or "").strip()
    if not host:
        logger.info("SMTP_HOST not set; quiz results will only be logged")
        return LoggingNotifier()
    email = EmailNotifier(
        smtp_host=host,
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        username=os.getenv("SMTP_USER") or None,
        password=os.getenv("SMTP_PASSWORD") or None,
        sender=os.getenv("SMTP_FROM", "no-reply@quizapp.local"),
        use_tls=_env_flag("SMTP_STARTTLS", True),
    )
    return BackgroundNotifier(email)
