"""Typed reads over the gateway.

Each function takes everything it needs as arguments (the gateway, and the
teacher or roster that scopes the read) so no call depends on session state.
Rows that fail validation are skipped and logged rather than failing the
whole read: one malformed sheet row should not hide a class's data.

Example:
    students = fetch_students(gateway, teacher)
    records = fetch_scores(gateway, students)
"""

from typing import Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from ..logutils import get_logger, with_context
from ..sheets import Gateway, Record
from .derived import scope_scores_to_students, sort_scores_by_date_descending
from .models import (
    HafalanItem,
    ReportTable,
    Score,
    ScoreRecord,
    Student,
    Teacher,
    index_scores,
)

logger = get_logger(__name__)

STUDENT_SHEET = "Student"
HAFALAN_SHEET = "Hafalan"
SCORE_SHEET = "Score"
REPORT_SHEET = "Report"

M = TypeVar("M", bound=BaseModel)


def _validate_rows(model: type[M], rows: Iterable[Record]) -> list[M]:
    valid = []
    skipped = 0
    for row in rows:
        try:
            valid.append(model.model_validate(row))
        except ValidationError as e:
            skipped += 1
            logger.debug("Skipping %s row: %s", model.__name__, e.errors()[0].get("msg"))
    if skipped:
        logger.warning("Skipped %d malformed %s rows", skipped, model.__name__)
    return valid


def fetch_students(gateway: Gateway, teacher: Teacher) -> list[Student]:
    """Students in the teacher's class, in sheet order.

    Raises:
        RemoteFetchError: If the Student sheet cannot be read.
    """
    with with_context(operation="fetch_students", teacher_class=teacher.class_name):
        students = _validate_rows(Student, gateway.read(STUDENT_SHEET))
        return [student for student in students if student.class_name == teacher.class_name]


def fetch_hafalan(gateway: Gateway) -> list[HafalanItem]:
    """Every curriculum item.

    Raises:
        RemoteFetchError: If the Hafalan sheet cannot be read.
    """
    with with_context(operation="fetch_hafalan"):
        return _validate_rows(HafalanItem, gateway.read(HAFALAN_SHEET))


def fetch_scores(gateway: Gateway, students: Iterable[Student]) -> list[ScoreRecord]:
    """Scores for the given roster, keyed and sorted newest first.

    Keys are assigned in sheet order before sorting. A row keeps its key
    across reads unless an identical row is inserted above it.

    Raises:
        RemoteFetchError: If the Score sheet cannot be read.
    """
    with with_context(operation="fetch_scores"):
        records = index_scores(_validate_rows(Score, gateway.read(SCORE_SHEET)))
        return sort_scores_by_date_descending(scope_scores_to_students(records, students))


def fetch_report(gateway: Gateway) -> ReportTable:
    """The Report sheet as an untyped table.

    Raises:
        RemoteFetchError: If the Report sheet cannot be read.
    """
    with with_context(operation="fetch_report"):
        return ReportTable.from_records(gateway.read(REPORT_SHEET))
