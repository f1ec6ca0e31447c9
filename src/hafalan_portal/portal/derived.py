"""Derived views over the loaded collections.

Everything here is a pure function of its arguments, cheap enough to run on
every Streamlit rerun: filtering, sorting, pagination and the per-category
counts behind the bar charts.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Generic, Iterable, Optional, Protocol, Sequence, TypeVar, Union

from .models import (
    Category,
    HafalanItem,
    InputTab,
    ReportRow,
    ScoreValue,
    Student,
    parse_sheet_date,
)


class ScoreLike(Protocol):
    """Anything exposing the score fields the filters look at."""

    @property
    def student_id(self) -> str: ...

    @property
    def category(self) -> str: ...

    @property
    def parsed_date(self) -> Optional[date]: ...

    @property
    def score_value(self) -> Optional[ScoreValue]: ...


T = TypeVar("T")
S = TypeVar("S", bound=ScoreLike)

DateBound = Union[date, str, None]

# Report sheets have no fixed schema; these columns are tried for dates
REPORT_DATE_COLUMNS = ("Tanggal", "Date", "Waktu", "Time")

DEFAULT_PAGE_SIZE = 10


def _bound(value: DateBound) -> Optional[date]:
    """Normalise a filter bound; empty strings mean no bound."""
    if value is None or value == "":
        return None
    parsed = parse_sheet_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date bound: {value!r}")
    return parsed


def _within(value: Optional[date], start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def filter_scores(
    scores: Iterable[S],
    student_id: Optional[str] = None,
    start_date: DateBound = None,
    end_date: DateBound = None,
) -> list[S]:
    """Keep scores matching the student and the inclusive date range.

    Each criterion is skipped when empty. A score whose date cannot be read
    fails any active date bound. Input order is preserved.

    Args:
        scores: Scores to filter.
        student_id: NISN to match exactly.
        start_date: Earliest date to keep (``date`` or ``YYYY-MM-DD``).
        end_date: Latest date to keep.

    Returns:
        The matching scores, in input order.

    Raises:
        ValueError: If a bound is not a readable date.
    """
    start, end = _bound(start_date), _bound(end_date)
    return [
        score
        for score in scores
        if (not student_id or score.student_id == student_id)
        and _within(score.parsed_date, start, end)
    ]


def filter_report_rows(
    rows: Iterable[ReportRow],
    start_date: DateBound = None,
    end_date: DateBound = None,
) -> list[ReportRow]:
    """Best-effort date filter for report rows.

    A row passes a bound if any of ``REPORT_DATE_COLUMNS`` holds a readable
    date satisfying it. Rows with no such cell fail every active bound. This
    is a heuristic over whatever columns the sheet happens to have, not a
    schema-checked filter: the two bounds may be met by different columns.
    """
    start, end = _bound(start_date), _bound(end_date)
    if start is None and end is None:
        return list(rows)

    def passes(row: ReportRow, check) -> bool:
        for column in REPORT_DATE_COLUMNS:
            value = parse_sheet_date(row.get(column))
            if value is not None and check(value):
                return True
        return False

    result = []
    for row in rows:
        if start is not None and not passes(row, lambda d: d >= start):
            continue
        if end is not None and not passes(row, lambda d: d <= end):
            continue
        result.append(row)
    return result


def sort_scores_by_date_descending(scores: Iterable[S]) -> list[S]:
    """Newest first; equal dates keep their relative order.

    ``sorted`` is stable, so sorting on a key that only looks at the date
    preserves input order among ties. Unreadable dates go last.
    """
    return sorted(
        scores,
        key=lambda score: (
            score.parsed_date is None,
            -(score.parsed_date.toordinal() if score.parsed_date else 0),
        ),
    )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a sequence."""

    items: list[T]
    page: int
    total_pages: int
    total_items: int
    page_size: int

    @property
    def start_index(self) -> int:
        """Zero-based position of the first item within the full sequence."""
        return (self.page - 1) * self.page_size

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def page_count(total_items: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages needed for ``total_items``."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total_items / page_size)


def paginate(sequence: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice out a 1-based page.

    ``total_pages`` is ``ceil(len / page_size)``. Pages outside
    ``[1, total_pages]`` are clamped to the nearest boundary page; an empty
    sequence yields page 1 with no items.

    Raises:
        ValueError: If ``page_size`` is not positive.
    """
    total_pages = page_count(len(sequence), page_size)
    current = min(max(page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    return Page(
        items=list(sequence[start:start + page_size]),
        page=current,
        total_pages=total_pages,
        total_items=len(sequence),
        page_size=page_size,
    )


def count_by_score_value(
    scores: Iterable[ScoreLike], category: Union[Category, str]
) -> list[tuple[ScoreValue, int]]:
    """Count scores per developmental stage within one category.

    Always returns the four stages in order BB, MB, BSH, BSB, zero-filled.
    Scores whose value is not one of the four are ignored.
    """
    counts = {value: 0 for value in ScoreValue}
    for score in scores:
        if score.category != category:
            continue
        value = score.score_value
        if value is not None:
            counts[value] += 1
    return list(counts.items())


def filter_hafalan_items(items: Iterable[HafalanItem], tab: InputTab) -> list[HafalanItem]:
    """Curriculum items for a sub-tab's category and semester."""
    return [
        item for item in items if item.category == tab.category and item.semester == tab.semester
    ]


def scope_scores_to_students(scores: Iterable[S], students: Iterable[Student]) -> list[S]:
    """Keep only scores belonging to the given roster."""
    roster = {student.nisn for student in students}
    return [score for score in scores if score.student_id in roster]


def student_name_map(students: Iterable[Student]) -> dict[str, str]:
    """NISN to display name."""
    return {student.nisn: student.name for student in students}


def student_label(names: dict[str, str], student_id: str) -> str:
    """Display name for a score's student, falling back to the raw ID."""
    return names.get(student_id) or student_id
