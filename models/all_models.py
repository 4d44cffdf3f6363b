import datetime
import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship
from core.database import Base

# ---------------------------------------------------------
# 1. EVENTS & CATEGORIES
# ---------------------------------------------------------
class Event(Base):
    __tablename__ = 'events'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)

    categories = relationship("Category", back_populates="event")
    judges = relationship("Judge", back_populates="event")

class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey('events.id'))
    name = Column(String(100), nullable=False)

    # Unit-less multiplier; sibling weights are never normalized or validated
    weight = Column(Float, nullable=True)

    event = relationship("Event", back_populates="categories")
    criteria = relationship("Criteria", back_populates="category")
    scores = relationship("Score", back_populates="category")

class Criteria(Base):
    __tablename__ = 'criterias'

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey('categories.id'))
    name = Column(String(100), nullable=False)
    max_score = Column(Integer, default=10)

    category = relationship("Category", back_populates="criteria")
    scores = relationship("Score", back_populates="criteria")

# ---------------------------------------------------------
# 2. JUDGES
# ---------------------------------------------------------
class Judge(Base):
    __tablename__ = 'judges'

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey('events.id'))
    name = Column(String(100), nullable=False)

    # If True, the judge's scores are left out of the ranking and the report
    score_exclusion = Column(Boolean, default=False, nullable=False)

    event = relationship("Event", back_populates="judges")
    scores_given = relationship("Score", back_populates="judge")

# ---------------------------------------------------------
# 3. CANDIDATES (global pool, not tied to an event)
# ---------------------------------------------------------
class Gender(enum.IntEnum):
    MALE = 1
    FEMALE = 2

class Candidate(Base):
    __tablename__ = 'candidates'

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False)
    candidate_number = Column(Integer, nullable=False)
    gender = Column(Integer, nullable=False) # Gender value

    scores = relationship("Score", back_populates="candidate")

    @property
    def display_name(self):
        return format_display_name(self.first_name, self.middle_name, self.last_name)

def format_display_name(first_name, middle_name, last_name):
    """'Last, First Middle', trimmed so an empty middle name leaves no trailing space."""
    return f"{last_name}, {first_name} {middle_name or ''}".strip()

# ---------------------------------------------------------
# 4. SCORES
# ---------------------------------------------------------
class Score(Base):
    __tablename__ = 'scores'

    id = Column(Integer, primary_key=True)

    # THE SCORE (0 <= score <= max)
    score = Column(Integer, nullable=False)
    max = Column(Integer, nullable=False)
    time_of_scoring = Column(DateTime, default=datetime.datetime.now)

    # WHO, WHOM, WHERE
    candidate_id = Column(Integer, ForeignKey('candidates.id'))
    criteria_id = Column(Integer, ForeignKey('criterias.id'))
    category_id = Column(Integer, ForeignKey('categories.id'))
    judge_id = Column(Integer, ForeignKey('judges.id'))

    candidate = relationship("Candidate", back_populates="scores")
    criteria = relationship("Criteria", back_populates="scores")
    category = relationship("Category", back_populates="scores")
    judge = relationship("Judge", back_populates="scores_given")
