import os
from datetime import date, datetime

# Settings are read at import time
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db import Base, get_db
from models import (
    Category, Difficulty, GuestConfig, JeopardyRound, KnowledgeCategory, Question, User, UserRole,
)

CRON_SECRET = os.environ["CRON_SECRET"]


def create_test_engine():
    """In-memory SQLite shared across connections."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


def _seed_content(db):
    capitals = Category(name="WORLD CAPITALS", knowledge_category=KnowledgeCategory.GEOGRAPHY_AND_HISTORY)
    science = Category(name="SCIENCE", knowledge_category=KnowledgeCategory.SCIENCE_AND_NATURE)
    db.add_all([capitals, science])
    db.flush()

    rows = [
        (capitals, "This city is the capital of France", "Paris", 200, JeopardyRound.SINGLE, date(2020, 1, 6)),
        (capitals, "This city is the capital of Japan", "Tokyo", 400, JeopardyRound.SINGLE, date(2020, 1, 6)),
        (capitals, "This city is the capital of Italy", "Rome", 800, JeopardyRound.DOUBLE, date(2020, 1, 6)),
        (science, "Au is the symbol for this element", "gold", 200, JeopardyRound.SINGLE, date(2020, 1, 7)),
        (science, "H2O is better known as this", "water", 400, JeopardyRound.SINGLE, date(2020, 1, 7)),
        (science, "This planet is known as the Red Planet", "Mars", None, JeopardyRound.FINAL, date(2020, 1, 7)),
    ]
    for category, text, answer, value, round_name, aired in rows:
        db.add(Question(
            question=text,
            answer=answer,
            value=value,
            difficulty=Difficulty.MEDIUM,
            category_id=category.id,
            knowledge_category=category.knowledge_category,
            round=round_name,
            is_double_jeopardy=round_name == JeopardyRound.DOUBLE,
            air_date=aired,
            episode_id="6500" if aired == date(2020, 1, 6) else "6501",
        ))


@pytest.fixture(scope="session")
def test_engine():
    """Create test database engine"""
    return create_test_engine()


@pytest.fixture(scope="function")
def test_db(test_engine):
    """Create all tables before each test and drop them after"""
    Base.metadata.create_all(bind=test_engine)
    TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False)
    db = TestingSessionLocal()

    try:
        db.add(GuestConfig(id="default"))
        db.add_all([
            User(
                descope_user_id="test_user_1",
                email="test1@example.com",
                display_name="QuizWhiz",
                last_online_at=datetime(2024, 1, 2, 12, 0, 0),
            ),
            User(
                descope_user_id="test_user_2",
                email="test2@example.com",
                display_name="TriviaBuff",
            ),
            User(
                descope_user_id="test_admin",
                email="admin@example.com",
                display_name="Moderator",
                role=UserRole.ADMIN,
            ),
        ])
        _seed_content(db)
        db.commit()

        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def current_user(test_db):
    return test_db.query(User).filter(User.email == "test1@example.com").one()


@pytest.fixture
def other_user(test_db):
    return test_db.query(User).filter(User.email == "test2@example.com").one()


@pytest.fixture
def admin_user(test_db):
    return test_db.query(User).filter(User.email == "admin@example.com").one()


@pytest.fixture
def questions(test_db):
    return {q.answer: q for q in test_db.query(Question).all()}


@pytest.fixture
def make_client(test_db):
    """
    Build a TestClient bound to the test session.

    `make_client(user)` signs every request in as `user`; `make_client()` is
    anonymous (no Authorization header reaches the real Descope check).
    """
    from main import app
    from routers.dependencies import get_current_user, get_optional_user

    previous_overrides = app.dependency_overrides.copy()

    def override_get_db():
        yield test_db

    def make(user=None):
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides.pop(get_current_user, None)
        app.dependency_overrides.pop(get_optional_user, None)
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
            app.dependency_overrides[get_optional_user] = lambda: user
        return TestClient(app)

    yield make

    app.dependency_overrides = previous_overrides


@pytest.fixture
def client(make_client, current_user):
    return make_client(current_user)


@pytest.fixture
def admin_client(make_client, admin_user):
    return make_client(admin_user)


@pytest.fixture
def anon_client(make_client):
    return make_client()
