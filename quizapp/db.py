from sqlmodel import SQLModel, create_engine, Session
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./app.db")

# the sweeper thread shares this engine with request code
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db():
    # register tables on the metadata before create_all
    from quizapp import models  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    return Session(engine, expire_on_commit=False)
