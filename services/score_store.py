import functools

from sqlalchemy import func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import RetrievalFailure
from core.logging_config import get_logger
from models.all_models import Event, Category, Criteria, Judge, Candidate, Score

logger = get_logger(__name__)


def _retrieval(operation):
    """Re-raise any database error from the wrapped query as a RetrievalFailure."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Failed to %s: %s", operation, e)
                raise RetrievalFailure(operation, e) from e
        return wrapper
    return decorator


class ScoreStore:
    """
    Read-only query contracts over the scoring tables.

    A store is bound to one session, so every call made through it during a
    single report or aggregation reads from the same snapshot.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------------------------------------------------------
    # STRUCTURE
    # ---------------------------------------------------------
    @_retrieval("get events")
    def list_events(self, event_ids=None):
        query = self.db.query(Event)
        if event_ids:
            query = query.filter(Event.id.in_(event_ids))
        events = query.order_by(Event.id).all()
        if event_ids:
            # Keep the caller's requested order
            by_id = {e.id: e for e in events}
            return [by_id[eid] for eid in event_ids if eid in by_id]
        return events

    @_retrieval("get event")
    def get_event(self, event_id):
        return self.db.query(Event).filter(Event.id == event_id).first()

    @_retrieval("get categories")
    def list_categories(self, event_id):
        return self.db.query(Category)\
            .filter(Category.event_id == event_id)\
            .order_by(Category.id).all()

    @_retrieval("get criterias")
    def list_criteria(self, category_id):
        return self.db.query(Criteria)\
            .filter(Criteria.category_id == category_id)\
            .order_by(Criteria.id).all()

    @_retrieval("get judges")
    def list_judges(self, event_id, active_only=True):
        query = self.db.query(Judge).filter(Judge.event_id == event_id)
        if active_only:
            query = query.filter(Judge.score_exclusion == False)
        return query.order_by(Judge.id).all()

    @_retrieval("get candidates")
    def list_candidates(self):
        """Every candidate in the pool, ordered by gender then candidate number."""
        return self.db.query(Candidate)\
            .order_by(Candidate.gender, Candidate.candidate_number).all()

    # ---------------------------------------------------------
    # SCORES
    # ---------------------------------------------------------
    @_retrieval("get candidate category totals")
    def sum_scores_by_candidate_category(self, event_id):
        """
        One row per (candidate, category) with the raw sums and the sums
        multiplied by the category weight as stored.

        Rows are scoped through the judge's event so that a score whose
        category is missing, or belongs to another event, still comes back
        (with a NULL weight or a foreign category_event_id) instead of
        silently disappearing from the join.

        Scores from excluded judges add nothing to the sums but still produce
        a row, so a candidate scored only by excluded judges comes back with
        qualifying_scores == 0 rather than vanishing.
        """
        counted = Judge.score_exclusion == False
        total_score = func.coalesce(func.sum(case((counted, Score.score), else_=0)), 0)
        total_max = func.coalesce(func.sum(case((counted, Score.max), else_=0)), 0)
        qualifying_scores = func.coalesce(func.sum(case((counted, 1), else_=0)), 0)

        return self.db.query(
            Candidate.id.label("candidate_id"),
            Candidate.first_name,
            Candidate.middle_name,
            Candidate.last_name,
            Score.category_id.label("category_id"),
            Category.event_id.label("category_event_id"),
            Category.weight.label("weight"),
            total_score.label("total_score"),
            total_max.label("total_max"),
            qualifying_scores.label("qualifying_scores"),
            (total_score * Category.weight).label("weighted_score"),
            (total_max * Category.weight).label("weighted_max"),
        ).select_from(Candidate)\
         .join(Score, Score.candidate_id == Candidate.id)\
         .join(Judge, Score.judge_id == Judge.id)\
         .outerjoin(Category, Score.category_id == Category.id)\
         .filter(Judge.event_id == event_id)\
         .group_by(
             Candidate.id, Candidate.first_name, Candidate.middle_name, Candidate.last_name,
             Score.category_id, Category.event_id, Category.weight,
         )\
         .order_by(Candidate.candidate_number, Candidate.gender, Score.category_id).all()

    @_retrieval("get candidate scores")
    def list_scores(self, candidate_id, category_id, judge_id):
        return self.db.query(Score.score, Score.max).filter(
            Score.candidate_id == candidate_id,
            Score.category_id == category_id,
            Score.judge_id == judge_id
        ).all()

    @_retrieval("get scores")
    def list_flat_scores(self, category_id, criterion_id):
        return self.db.query(
            Score.score,
            Score.max,
            Judge.name.label("judge_name"),
            Candidate.first_name.label("candidate_first_name"),
            Candidate.middle_name.label("candidate_middle_name"),
            Candidate.last_name.label("candidate_last_name"),
            Category.weight.label("weight"),
            Event.name.label("event_name"),
        ).select_from(Score)\
         .join(Judge, Judge.id == Score.judge_id)\
         .join(Candidate, Candidate.id == Score.candidate_id)\
         .join(Category, Category.id == Score.category_id)\
         .join(Event, Event.id == Category.event_id)\
         .filter(Score.category_id == category_id, Score.criteria_id == criterion_id)\
         .order_by(Score.id).all()

    @_retrieval("get duplicate scores")
    def find_duplicate_scores(self, event_id):
        """(candidate, criterion, judge) triples that were scored more than once."""
        return self.db.query(
            Score.candidate_id,
            Score.criteria_id,
            Score.judge_id,
            func.count(Score.id).label("score_count"),
        ).select_from(Score)\
         .join(Judge, Score.judge_id == Judge.id)\
         .filter(Judge.event_id == event_id)\
         .group_by(Score.candidate_id, Score.criteria_id, Score.judge_id)\
         .having(func.count(Score.id) > 1)\
         .order_by(Score.candidate_id, Score.criteria_id, Score.judge_id).all()
