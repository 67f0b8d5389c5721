from typing import Optional
from quizapp.db import get_session
from quizapp.models import User
from sqlmodel import select


def create_user(email: str, full_name: Optional[str] = None, role: str = "participant"):
    with get_session() as session:
        q = select(User).where(User.email == email)
        existing = session.exec(q).first()
        if existing:
            raise ValueError("User already exists")
        user = User(email=email, full_name=full_name, role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def get_user_by_id(user_id: int):
    with get_session() as session:
        return session.get(User, user_id)


def get_user_by_email(email: str):
    with get_session() as session:
        return session.exec(select(User).where(User.email == email)).first()
