import argparse
import random
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import select  # noqa: E402

from quizapp.attempts import AttemptService  # noqa: E402
from quizapp.db import get_session, init_db  # noqa: E402
from quizapp.models import Quiz, User  # noqa: E402
from quizapp.quiz import create_quiz, load_quiz  # noqa: E402


SEED_USER_PREFIX = "seed_participant"
SEED_QUIZ_PREFIX = "[SEED]"


def _question_defs(count):
    defs = []
    for n in range(count):
        defs.append(
            {
                "text": f"Seed question {n+1}",
                "options": ["Option A", "Option B", "Option C", "Option D"],
                "correct_index": n % 4,
                "points": 1 + (n % 3) * 5,
            }
        )
    return defs


def main():
    parser = argparse.ArgumentParser(description="Seed a demo quiz with participants and attempts.")
    parser.add_argument("--participants", type=int, default=8)
    parser.add_argument("--questions", type=int, default=6)
    parser.add_argument("--time-limit", type=int, default=30, help="Minutes; 0 for untimed.")
    args = parser.parse_args()

    random.seed(42)
    init_db()

    with get_session() as session:
        existing = session.exec(select(Quiz)).all()
        if any(q.title.startswith(SEED_QUIZ_PREFIX) for q in existing):
            raise SystemExit("Seed quiz already exists.")

        author = session.exec(select(User).where(User.email == f"{SEED_USER_PREFIX}+admin@example.com")).first()
        if not author:
            author = User(email=f"{SEED_USER_PREFIX}+admin@example.com", full_name="Seed Admin", role="admin")
            session.add(author)
            session.commit()
            session.refresh(author)

        users = []
        for i in range(args.participants):
            email = f"{SEED_USER_PREFIX}+{i+1}@example.com"
            user = session.exec(select(User).where(User.email == email)).first()
            if not user:
                user = User(email=email, full_name=f"Seed Participant {i+1}")
                session.add(user)
                session.commit()
                session.refresh(user)
            users.append(user)

    quiz = create_quiz(
        f"{SEED_QUIZ_PREFIX} Demo Quiz",
        author.id,
        _question_defs(args.questions),
        time_limit=args.time_limit or None,
    )
    view = load_quiz(quiz.id)

    service = AttemptService()
    submitted = 0
    for idx, user in enumerate(users):
        attempt = service.start_attempt(user.id, quiz.id)
        success_rate = (0.35, 0.6, 0.85)[idx % 3]
        answers = {}
        for q in view.questions:
            if random.random() < success_rate:
                answers[q.id] = q.correct_index
            else:
                answers[q.id] = random.randrange(len(q.options))
        # every other participant leaves their attempt in progress
        if idx % 2 == 0:
            service.submit(attempt.id, answers)
            submitted += 1
        else:
            service.save_answers(attempt.id, answers)

    print(
        f"Seed complete for quiz {quiz.title} (id={quiz.id}). "
        f"Participants={len(users)}, Submitted={submitted}, InProgress={len(users) - submitted}"
    )


if __name__ == "__main__":
    main()
