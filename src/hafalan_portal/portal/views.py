"""Navigation state and view models for the portal.

``PortalView`` tracks which tab is open and the filter/page state of the two
report tables, and turns the session's snapshots into plain view models the
Streamlit layer renders without further logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .controller import PortalSession
from .derived import (
    DEFAULT_PAGE_SIZE,
    Page,
    count_by_score_value,
    filter_hafalan_items,
    filter_report_rows,
    filter_scores,
    paginate,
    student_label,
    student_name_map,
)
from .models import (
    DEFAULT_TAB,
    INPUT_TABS,
    Category,
    HafalanItem,
    InputTab,
    ReportRow,
    ScoreRecord,
    ScoreValue,
)
from .repository import HAFALAN_SHEET, REPORT_SHEET, SCORE_SHEET, STUDENT_SHEET


class MainTab(str, Enum):
    INPUT = "input"
    REPORT = "report"


# Collections each main tab reads; a load error only affects these tabs
TAB_COLLECTIONS = {
    MainTab.INPUT: (STUDENT_SHEET, HAFALAN_SHEET),
    MainTab.REPORT: (STUDENT_SHEET, SCORE_SHEET, REPORT_SHEET),
}


class ReportMode(str, Enum):
    """Which table the Report tab shows.

    The Report sheet wins whenever it has rows; the score table and charts
    are only the fallback. There is no toggle between them.
    """

    REPORT_ROWS = "report_rows"
    SCORES = "scores"


@dataclass
class ScoreFilters:
    """Criteria and page of the score table.

    Changing any criterion sends the table back to page 1.
    """

    student_id: str = ""
    start_date: str = ""
    end_date: str = ""
    page: int = 1

    def update(
        self,
        student_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> None:
        changes = {
            "student_id": student_id,
            "start_date": start_date,
            "end_date": end_date,
        }
        changed = False
        for name, value in changes.items():
            if value is not None and value != getattr(self, name):
                setattr(self, name, value)
                changed = True
        if changed:
            self.page = 1

    def reset(self) -> None:
        self.student_id = self.start_date = self.end_date = ""
        self.page = 1


@dataclass
class ReportFilters:
    """Date range and page of the Report sheet table."""

    start_date: str = ""
    end_date: str = ""
    page: int = 1

    def update(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> None:
        changed = False
        if start_date is not None and start_date != self.start_date:
            self.start_date = start_date
            changed = True
        if end_date is not None and end_date != self.end_date:
            self.end_date = end_date
            changed = True
        if changed:
            self.page = 1

    def reset(self) -> None:
        self.start_date = self.end_date = ""
        self.page = 1


@dataclass(frozen=True)
class ScoreRow:
    """One rendered row of the score table."""

    number: int
    key: str
    student: str
    category: str
    item_name: str
    score: str
    date: str
    notes: str


@dataclass(frozen=True)
class ChartSeries:
    """Bar chart data for one category."""

    category: Category
    counts: list[tuple[ScoreValue, int]]

    @property
    def title(self) -> str:
        return f"Distribusi Nilai {self.category.label}"

    def as_columns(self) -> dict[str, list]:
        """Column-oriented data for ``st.bar_chart``."""
        return {
            "Nilai": [value.value for value, _ in self.counts],
            "Jumlah": [count for _, count in self.counts],
        }


@dataclass(frozen=True)
class ScoreReportView:
    rows: list[ScoreRow]
    page: Page[ScoreRecord]
    charts: list[ChartSeries]
    total_count: int

    @property
    def filtered_count(self) -> int:
        return self.page.total_items

    @property
    def no_match(self) -> bool:
        """Filters hide every score even though scores exist."""
        return self.filtered_count == 0 and self.total_count > 0


@dataclass(frozen=True)
class ReportTableView:
    columns: tuple[str, ...]
    rows: list[tuple[int, ReportRow]]
    page: Page[ReportRow]
    total_count: int

    @property
    def filtered_count(self) -> int:
        return self.page.total_items

    @staticmethod
    def cell(row: ReportRow, column: str) -> str:
        value = row.get(column)
        return "-" if value is None or value == "" else value


@dataclass
class PortalView:
    """Tab selection plus table state for one session."""

    session: PortalSession
    page_size: int = DEFAULT_PAGE_SIZE
    main_tab: MainTab = MainTab.INPUT
    sub_tab: str = DEFAULT_TAB
    score_filters: ScoreFilters = field(default_factory=ScoreFilters)
    report_filters: ReportFilters = field(default_factory=ReportFilters)

    @property
    def active_tab(self) -> InputTab:
        return INPUT_TABS[self.sub_tab]

    def select_main_tab(self, tab: MainTab) -> None:
        """Switch between Input and Report.

        Entering Input resets the form's item and score; entering Report
        (re)loads the Report sheet and the scores.
        """
        if tab == self.main_tab:
            return
        self.main_tab = tab
        self.session.status.clear()
        if tab == MainTab.INPUT:
            self.session.reset_form(self.active_tab, keep_student=True)
        else:
            self.session.load_report_view()

    def select_sub_tab(self, key: str) -> None:
        """Switch input sub-tab; keeps the chosen student.

        Raises:
            KeyError: If ``key`` is not one of the six sub-tabs.
        """
        tab = INPUT_TABS[key]
        if key == self.sub_tab:
            return
        self.sub_tab = key
        self.session.status.clear()
        self.session.reset_form(tab, keep_student=True)

    def hafalan_options(self) -> list[HafalanItem]:
        return filter_hafalan_items(self.session.hafalan, self.active_tab)

    def student_options(self) -> list[tuple[str, str]]:
        """(NISN, label) pairs for the student pickers."""
        return [(s.nisn, f"{s.name} ({s.nisn})") for s in self.session.students]

    def fetch_error(self) -> Optional[str]:
        """First load error among the collections the open tab reads."""
        errors = self.session.fetch_errors
        return next((errors[c] for c in TAB_COLLECTIONS[self.main_tab] if c in errors), None)

    def blocking_error(self) -> Optional[str]:
        """The open tab's load error, if the tab has nothing else to show.

        Input needs the roster. Report needs report rows or scores; a stale
        snapshot is shown with the error as a warning instead.
        """
        error = self.fetch_error()
        if error is None:
            return None
        session = self.session
        if self.main_tab == MainTab.INPUT:
            has_data = bool(session.students)
        else:
            has_data = len(session.report) > 0 or bool(session.score_records)
        return None if has_data else error

    def report_mode(self) -> ReportMode:
        if len(self.session.report) > 0:
            return ReportMode.REPORT_ROWS
        return ReportMode.SCORES

    def build_score_report(self) -> ScoreReportView:
        """Filtered, paginated score table with per-category charts."""
        records = self.session.score_records
        filters = self.score_filters
        filtered = filter_scores(records, filters.student_id, filters.start_date, filters.end_date)

        page = paginate(filtered, filters.page, self.page_size)
        filters.page = page.page

        names = student_name_map(self.session.students)
        rows = [
            ScoreRow(
                number=page.start_index + offset + 1,
                key=record.key,
                student=student_label(names, record.score.student_id),
                category=record.score.category,
                item_name=record.score.item_name,
                score=record.score.score,
                date=record.score.assessment_date,
                notes=record.score.notes or "-",
            )
            for offset, record in enumerate(page.items)
        ]
        charts = [ChartSeries(category, count_by_score_value(filtered, category)) for category in Category]
        return ScoreReportView(rows=rows, page=page, charts=charts, total_count=len(records))

    def build_report_table(self) -> ReportTableView:
        """Filtered, paginated Report sheet table."""
        report = self.session.report
        filters = self.report_filters
        filtered = filter_report_rows(report.rows, filters.start_date, filters.end_date)

        page = paginate(filtered, filters.page, self.page_size)
        filters.page = page.page

        rows = [(page.start_index + offset + 1, row) for offset, row in enumerate(page.items)]
        return ReportTableView(
            columns=report.columns, rows=rows, page=page, total_count=len(report)
        )
