import csv
import io

from core.config import get_settings
from core.database import SessionLocal
from core.exceptions import RenderFailure
from core.logging_config import get_logger
from services.score_store import ScoreStore

logger = get_logger(__name__)

FLAT_HEADERS = [
    "Event",
    "Category",
    "Criteria",
    "Candidate First Name",
    "Candidate Middle Name",
    "Candidate Last Name",
    "Judge",
    "Score",
    "Max",
    "Weight",
]


class ExportService:
    def __init__(self, session_factory=SessionLocal, delimiter=None):
        self.session_factory = session_factory
        self.delimiter = delimiter or get_settings().export_delimiter

    def iter_flat_records(self, store, event_ids=None):
        """
        One record per score, walking events -> categories -> criteria.
        Scores keep the order the store returns them in.
        """
        for event in store.list_events(event_ids):
            for category in store.list_categories(event.id):
                for criteria in store.list_criteria(category.id):
                    for s in store.list_flat_scores(category.id, criteria.id):
                        yield [
                            s.event_name,
                            category.name,
                            criteria.name,
                            s.candidate_first_name,
                            s.candidate_middle_name,
                            s.candidate_last_name,
                            s.judge_name,
                            s.score,
                            s.max,
                            s.weight,
                        ]

    def export_flat(self, *event_ids):
        """
        Delimited export of every score in the given events (all events if
        none are given), header row first. Returns UTF-8 bytes.
        """
        db = self.session_factory()
        try:
            records = list(self.iter_flat_records(ScoreStore(db), list(event_ids) or None))
        finally:
            db.close()

        try:
            output = io.StringIO()
            writer = csv.writer(output, delimiter=self.delimiter, lineterminator="\n")
            writer.writerow(FLAT_HEADERS)
            writer.writerows(records)
            data = output.getvalue().encode("utf-8")
        except (csv.Error, TypeError, ValueError) as e:
            logger.error("Export failed for events %s: %s", list(event_ids) or "all", e)
            raise RenderFailure(f"Failed to serialize record: {e}") from e

        logger.info("Exported %d score rows for events %s", len(records), list(event_ids) or "all")
        return data
