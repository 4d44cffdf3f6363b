"""
Pytest configuration and fixtures for testing.

Provides:
- An in-memory SQLite database shared by the test session and the services
- A session factory the services can be built with
- A populated pageant event
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base
from models.all_models import Event, Category, Criteria, Judge, Candidate, Gender, Score


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema for each test, dropped afterwards."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    return TestingSessionLocal


@pytest.fixture
def broken_session_factory():
    """Sessions bound to a database with no tables, so every query fails."""
    empty_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return sessionmaker(autocommit=False, autoflush=False, bind=empty_engine)


def add_score(db, candidate, criteria, judge, value):
    score = Score(
        score=value,
        max=criteria.max_score,
        candidate_id=candidate.id,
        criteria_id=criteria.id,
        category_id=criteria.category_id,
        judge_id=judge.id,
    )
    db.add(score)
    return score


@pytest.fixture
def pageant(db_session):
    """
    One event with two categories and three judges (the third excluded).

    Talent (60%): Walk /50, Poise /50
    Interview (40%): Answer /100

    Male: #1 Juan Santos Dela Cruz, #2 Pedro Penduko, #3 Jose Protacio Rizal
    Female: #1 Maria Clara Ibarra, #2 Sisa Alba
    """
    db = db_session
    event = Event(name="Search for Mr. & Ms. 2024")
    db.add(event)
    db.flush()

    talent = Category(event_id=event.id, name="Talent", weight=0.6)
    interview = Category(event_id=event.id, name="Interview", weight=0.4)
    db.add_all([talent, interview])
    db.flush()

    walk = Criteria(category_id=talent.id, name="Walk", max_score=50)
    poise = Criteria(category_id=talent.id, name="Poise", max_score=50)
    answer = Criteria(category_id=interview.id, name="Answer", max_score=100)
    db.add_all([walk, poise, answer])

    judy = Judge(event_id=event.id, name="Judge Judy")
    simon = Judge(event_id=event.id, name="Simon Cowell")
    paula = Judge(event_id=event.id, name="Paula Abdul", score_exclusion=True)
    db.add_all([judy, simon, paula])

    juan = Candidate(first_name="Juan", middle_name="Santos", last_name="Dela Cruz",
                     candidate_number=1, gender=Gender.MALE)
    pedro = Candidate(first_name="Pedro", middle_name="", last_name="Penduko",
                      candidate_number=2, gender=Gender.MALE)
    jose = Candidate(first_name="Jose", middle_name="Protacio", last_name="Rizal",
                     candidate_number=3, gender=Gender.MALE)
    maria = Candidate(first_name="Maria", middle_name="Clara", last_name="Ibarra",
                      candidate_number=1, gender=Gender.FEMALE)
    sisa = Candidate(first_name="Sisa", middle_name="", last_name="Alba",
                     candidate_number=2, gender=Gender.FEMALE)
    # Inserted out of order on purpose
    db.add_all([sisa, jose, maria, pedro, juan])
    db.flush()

    # Juan: scored by everyone
    add_score(db, juan, walk, judy, 40)
    add_score(db, juan, poise, judy, 40)
    add_score(db, juan, answer, judy, 90)
    add_score(db, juan, walk, simon, 30)
    add_score(db, juan, poise, simon, 35)
    add_score(db, juan, answer, simon, 70)
    add_score(db, juan, walk, paula, 10)
    add_score(db, juan, poise, paula, 10)
    add_score(db, juan, answer, paula, 10)

    # Maria: only Judy
    add_score(db, maria, walk, judy, 50)
    add_score(db, maria, poise, judy, 50)
    add_score(db, maria, answer, judy, 100)

    # Pedro: interview only
    add_score(db, pedro, answer, judy, 50)

    # Sisa: only the excluded judge
    add_score(db, sisa, walk, paula, 20)

    # Jose: never scored
    db.commit()

    return SimpleNamespace(
        event=event,
        talent=talent, interview=interview,
        walk=walk, poise=poise, answer=answer,
        judy=judy, simon=simon, paula=paula,
        juan=juan, pedro=pedro, jose=jose, maria=maria, sisa=sisa,
        score_count=14,
    )
