from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment
from openpyxl.utils import get_column_letter

from core.config import get_settings
from core.database import SessionLocal
from core.exceptions import DataIntegrityFailure, RenderFailure
from core.logging_config import get_logger
from models.all_models import Gender
from services.score_store import ScoreStore

logger = get_logger(__name__)

# Layout constants (0-based columns)
HEADING_LAST_COL = 6
BLANK_ROWS_BETWEEN_BLOCKS = 1
CANDIDATE_NO_WIDTH = 15
NAME_WIDTH = 30
JUDGE_WIDTH = 30
AVERAGE_WIDTH = 20
WEIGHT_WIDTH = 15


def format_weight(weight):
    """0.6 -> '60%', 0.125 -> '12.5%', two decimals at most."""
    label = f"{round(weight * 100, 2):.2f}".rstrip("0").rstrip(".")
    return f"{label}%"


def block_height(male_count, female_count):
    """Rows a category block occupies below its title row."""
    return male_count + female_count + 3


class ReportService:
    """
    Audit spreadsheet mirroring the judges' score sheets: one block per
    category, each listing every candidate with one column per active judge.

    The per-judge subtotal is a plain sum of that judge's scores, and the
    derived columns average those subtotals over the judges. This is a
    separate figure from the final score produced by AggregationService.
    """

    def __init__(self, session_factory=SessionLocal, sheet_title=None):
        self.session_factory = session_factory
        self.sheet_title = sheet_title or get_settings().report_sheet_title

    def render_report_grid(self, event_id):
        """Return the .xlsx workbook for an event as bytes."""
        db = self.session_factory()
        try:
            store = ScoreStore(db)
            event = store.get_event(event_id)
            if event is None:
                raise DataIntegrityFailure(f"Event {event_id} not found")

            categories = store.list_categories(event_id)
            judges = store.list_judges(event_id, active_only=True)
            if not judges:
                logger.warning("Event '%s' has no active judges; average columns will be blank", event.name)

            # Candidates are drawn from the whole pool, not only this event
            candidates = store.list_candidates()
            male = [c for c in candidates if c.gender == Gender.MALE]
            female = [c for c in candidates if c.gender != Gender.MALE]

            blocks = [self._build_block(store, cat, judges, male, female) for cat in categories]
            buffer = write_report_workbook(blocks, self.sheet_title)
        except (DataIntegrityFailure, RenderFailure) as e:
            logger.error("Report failed for event %s: %s", event_id, e)
            raise
        finally:
            db.close()

        logger.info("Rendered report for event '%s': %d categories, %d judges", event.name, len(blocks), len(judges))
        return buffer

    def _build_block(self, store, category, judges, male, female):
        if category.weight is None:
            raise DataIntegrityFailure(f"Category '{category.name}' has no weight")

        return {
            "name": category.name,
            "weight_label": format_weight(category.weight),
            "judges": [j.name for j in judges],
            "male": [self._candidate_row(store, c, category, judges) for c in male],
            "female": [self._candidate_row(store, c, category, judges) for c in female],
        }

    def _candidate_row(self, store, candidate, category, judges):
        judge_totals = []
        for judge in judges:
            scores = store.list_scores(candidate.id, category.id, judge.id)
            judge_totals.append(sum(s.score for s in scores))

        if judges:
            average_score = sum(judge_totals) / len(judges)
            average_cell = f"{average_score:.2f}"
            weighted_cell = f"{average_score * category.weight:.2f}"
        else:
            average_cell = weighted_cell = None

        return [candidate.candidate_number, candidate.display_name] + judge_totals + [average_cell, weighted_cell]


def write_report_workbook(blocks, sheet_title="Tabulation"):
    """Lay the category blocks out on one sheet and serialize the workbook."""
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title

        heading_font = Font(size=13.5, bold=True)
        bold_font = Font(bold=True)
        center = Alignment(horizontal="center")

        def put(row, col, value, font=None, alignment=None):
            cell = ws.cell(row=row + 1, column=col + 1, value=value)
            if font:
                cell.font = font
            if alignment:
                cell.alignment = alignment
            return cell

        def set_width(col, width):
            ws.column_dimensions[get_column_letter(col + 1)].width = width

        set_width(0, CANDIDATE_NO_WIDTH)
        set_width(1, NAME_WIDTH)

        row_offset = 0
        for block in blocks:
            judge_count = len(block["judges"])

            ws.merge_cells(start_row=row_offset + 1, start_column=1,
                           end_row=row_offset + 1, end_column=HEADING_LAST_COL + 1)
            put(row_offset, 0, block["name"], font=heading_font)

            headers = ["Candidate #", "Name"] + block["judges"] + ["Average Score", block["weight_label"]]
            for col, h in enumerate(headers):
                put(row_offset + 1, col, h, font=bold_font, alignment=center)

            for col in range(judge_count):
                set_width(col + 2, JUDGE_WIDTH)
            set_width(judge_count + 2, AVERAGE_WIDTH)
            set_width(judge_count + 3, WEIGHT_WIDTH)

            put(row_offset + 2, 0, "MALE")
            row = row_offset + 3
            for values in block["male"]:
                for col, val in enumerate(values):
                    put(row, col, val)
                row += 1

            put(row, 0, "FEMALE")
            row += 1
            for values in block["female"]:
                for col, val in enumerate(values):
                    put(row, col, val)
                row += 1

            # Title row, the block itself, then the gap
            row_offset += 1 + block_height(len(block["male"]), len(block["female"])) + BLANK_ROWS_BETWEEN_BLOCKS

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()
    except Exception as e:
        raise RenderFailure(f"Failed to write report workbook: {e}") from e
