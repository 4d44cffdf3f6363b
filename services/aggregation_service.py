from decimal import Decimal, ROUND_HALF_UP

from core.database import SessionLocal
from core.exceptions import DataIntegrityFailure
from core.logging_config import get_logger
from models.all_models import Gender, format_display_name
from services.score_store import ScoreStore

logger = get_logger(__name__)

TWO_PLACES = Decimal("0.01")


def round_two(value):
    """Round half away from zero to two decimals, returned as an exact Decimal."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _row_problem(row, event_id):
    if row.category_event_id is None:
        return f"score references missing category {row.category_id}"
    if row.category_event_id != event_id:
        return f"category {row.category_id} belongs to event {row.category_event_id}, not {event_id}"
    if row.weight is None:
        return f"category {row.category_id} has no weight"
    return None


def aggregate_final_scores(rows, event_id):
    """
    Reduce per-(candidate, category) totals into one final percentage per candidate.

    Each category's weighted score and weighted max are rounded to two
    decimals before they are added to the candidate's running sums; the
    final score is (sum of weighted scores / sum of weighted max) * 100.

    Returns (results, rejected). `rejected` maps the candidate id of every
    candidate with a malformed row, or with no scores from an active judge,
    to the DataIntegrityFailure describing it; those candidates are left out
    of `results`. Any other candidate whose weighted max sums to zero raises
    DataIntegrityFailure.
    """
    totals = {}
    rejected = {}

    for row in rows:
        candidate_id = row.candidate_id
        if candidate_id in rejected:
            continue

        problem = _row_problem(row, event_id)
        if problem:
            name = format_display_name(row.first_name, row.middle_name, row.last_name)
            rejected[candidate_id] = DataIntegrityFailure(
                f"Candidate '{name}' excluded: {problem}", candidate_id=candidate_id
            )
            totals.pop(candidate_id, None)
            continue

        entry = totals.setdefault(candidate_id, {
            "display_name": format_display_name(row.first_name, row.middle_name, row.last_name),
            "weighted_score": Decimal("0"),
            "weighted_max": Decimal("0"),
            "qualifying_scores": 0,
        })
        entry["qualifying_scores"] += int(row.qualifying_scores)
        entry["weighted_score"] += round_two(row.weighted_score)
        entry["weighted_max"] += round_two(row.weighted_max)

    results = []
    for candidate_id, entry in totals.items():
        if entry["qualifying_scores"] == 0:
            rejected[candidate_id] = DataIntegrityFailure(
                f"Candidate '{entry['display_name']}' excluded: no scores from an active judge",
                candidate_id=candidate_id,
            )
            continue
        if entry["weighted_max"] == 0:
            raise DataIntegrityFailure(
                f"Cannot compute final score for '{entry['display_name']}': weighted max is zero",
                candidate_id=candidate_id,
            )
        final_score = float(entry["weighted_score"] / entry["weighted_max"] * 100)
        results.append({
            "candidate_id": candidate_id,
            "display_name": entry["display_name"],
            "final_score": final_score,
        })

    return results, rejected


class AggregationService:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _compute(self, store, event_id):
        duplicates = store.find_duplicate_scores(event_id)
        if duplicates:
            logger.warning(
                "Event %s has %d (candidate, criteria, judge) triples scored more than once; "
                "they are summed as stored", event_id, len(duplicates)
            )

        rows = store.sum_scores_by_candidate_category(event_id)
        results, rejected = aggregate_final_scores(rows, event_id)
        for error in rejected.values():
            logger.error("Event %s: %s", event_id, error)
        return results

    # ---------------------------------------------------------
    # FINAL SCORES
    # ---------------------------------------------------------
    def compute_final_scores(self, event_id):
        """[{candidate_id, display_name, final_score}] for every candidate scored in the event."""
        db = self.session_factory()
        try:
            results = self._compute(ScoreStore(db), event_id)
            logger.info("Computed final scores for %d candidates in event %s", len(results), event_id)
            return results
        except DataIntegrityFailure as e:
            logger.error("Aggregation failed for event %s: %s", event_id, e)
            raise
        finally:
            db.close()

    def rank_candidates(self, event_id):
        """
        Final scores split into male and female standings, highest first.
        Ties keep candidate number order.
        """
        db = self.session_factory()
        try:
            store = ScoreStore(db)
            results = self._compute(store, event_id)
            candidates = {c.id: c for c in store.list_candidates()}
        except DataIntegrityFailure as e:
            logger.error("Ranking failed for event %s: %s", event_id, e)
            raise
        finally:
            db.close()

        data = {'Male': [], 'Female': []}
        for r in results:
            c = candidates[r["candidate_id"]]
            gender = 'Male' if c.gender == Gender.MALE else 'Female'
            data[gender].append({**r, "number": c.candidate_number})

        for gender in ['Male', 'Female']:
            data[gender].sort(key=lambda x: (-x['final_score'], x['number']))
            for i, r in enumerate(data[gender]):
                r['rank'] = i + 1
        return data
