"""Record controller for the teacher portal.

``PortalSession`` owns everything one teacher's browser session holds in
memory: the loaded collections, the score form, the edit/delete surfaces and
the status banners. It is UI-agnostic; the Streamlit app keeps one instance
in ``st.session_state`` and renders from it.

Score writes always end with a full re-read of the Score sheet, so the
tables never show a row the sheet no longer has. Report rows are edited only
in memory: the web app has no write support for the Report sheet yet.
"""

import time
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Optional, TypeVar

from ..logutils import get_logger, with_context
from ..sheets import Gateway, RemoteFetchError, RemoteWriteError, WriteResult
from .errors import FormValidationError, ReadOnlyFieldError, RecordNotFoundError
from .models import (
    DEFAULT_TAB,
    INPUT_TABS,
    HafalanItem,
    InputTab,
    ReportRow,
    ReportTable,
    Score,
    ScoreRecord,
    Student,
    Teacher,
)
from .repository import (
    HAFALAN_SHEET,
    REPORT_SHEET,
    SCORE_SHEET,
    STUDENT_SHEET,
    fetch_hafalan,
    fetch_report,
    fetch_scores,
    fetch_students,
)
from .status import DEFAULT_DISMISS_SECONDS, StatusChannel

logger = get_logger(__name__)

INCOMPLETE_FORM = "Silakan lengkapi semua pilihan: siswa, item, dan penilaian."
UNKNOWN_ERROR = "Terjadi kesalahan yang tidak diketahui."

# Page-level messages shown when a collection cannot be read
FETCH_MESSAGES = {
    STUDENT_SHEET: "Gagal memuat data siswa. Silakan coba lagi.",
    HAFALAN_SHEET: "Gagal memuat daftar item hafalan.",
    SCORE_SHEET: "Gagal memuat data penilaian.",
    REPORT_SHEET: "Gagal memuat data laporan.",
}

EDITABLE_SCORE_FIELDS = frozenset({"category", "score", "notes"})

T = TypeVar("T")


@dataclass
class ScoreForm:
    """Values of the new-score form."""

    student_id: str = ""
    category: str = INPUT_TABS[DEFAULT_TAB].category.value
    item_name: str = ""
    score: str = ""
    assessment_date: str = ""
    notes: str = ""

    def missing_fields(self) -> list[str]:
        """Required selections that are still empty."""
        required = {"student_id": self.student_id, "item_name": self.item_name, "score": self.score}
        return [name for name, value in required.items() if not value.strip()]

    def to_score(self) -> Score:
        return Score(
            student_id=self.student_id,
            category=self.category,
            item_name=self.item_name,
            score=self.score,
            assessment_date=self.assessment_date,
            notes=self.notes,
        )


@dataclass
class ScoreEdit:
    """An open edit: the record as loaded, and the working draft."""

    original: ScoreRecord
    draft: Score


@dataclass
class ReportRowEdit:
    """An open report-row edit with the cell values being typed."""

    row: ReportRow
    values: dict[str, str] = field(default_factory=dict)


class PortalSession:
    """In-memory state and operations for one teacher session."""

    def __init__(
        self,
        gateway: Gateway,
        teacher: Teacher,
        status_seconds: float = DEFAULT_DISMISS_SECONDS,
        report_latency: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the session.

        Args:
            gateway: Access to the spreadsheet collections.
            teacher: Whose class this session shows.
            status_seconds: How long status banners stay visible.
            report_latency: Simulated delay for in-memory report writes.
            clock: Monotonic time source for banner expiry.
            sleep: Used for the simulated report latency.
            today: Date source for the form's default date.
        """
        self.gateway = gateway
        self.teacher = teacher
        self.report_latency = report_latency
        self._sleep = sleep
        self._today = today

        self.students: list[Student] = []
        self.hafalan: list[HafalanItem] = []
        self.score_records: list[ScoreRecord] = []
        self.report = ReportTable()
        self.loaded: set[str] = set()
        self.fetch_errors: dict[str, str] = {}

        self.status = StatusChannel(status_seconds, clock)
        self.report_status = StatusChannel(status_seconds, clock)

        self.form = ScoreForm(assessment_date=self._today_text())
        # Bumped on every reset so renderers can rebuild their inputs
        self.form_revision = 0
        self.submitting = False
        self.edit: Optional[ScoreEdit] = None
        self.delete_target: Optional[ScoreRecord] = None
        self.report_edit: Optional[ReportRowEdit] = None
        self.report_delete_target: Optional[ReportRow] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def error(self) -> Optional[str]:
        """First page-level fetch error, if any."""
        return next(iter(self.fetch_errors.values()), None)

    def load_students(self) -> None:
        """Read the class roster. Failures are recorded, not raised."""
        students = self._fetch(STUDENT_SHEET, lambda: fetch_students(self.gateway, self.teacher))
        if students is not None:
            self.students = students

    def load_hafalan(self) -> None:
        """Read the curriculum items. Failures are recorded, not raised."""
        items = self._fetch(HAFALAN_SHEET, lambda: fetch_hafalan(self.gateway))
        if items is not None:
            self.hafalan = items

    def load_scores(self) -> None:
        """Re-read the Score sheet, scoped to the roster and sorted.

        On failure the previous snapshot is kept and a fetch error recorded.
        """
        records = self._fetch(SCORE_SHEET, lambda: fetch_scores(self.gateway, self.students))
        if records is not None:
            self.score_records = records

    def load_report(self) -> None:
        """Re-read the Report sheet. Failures are recorded, not raised."""
        report = self._fetch(REPORT_SHEET, lambda: fetch_report(self.gateway))
        if report is not None:
            self.report = report

    def load_reference_data(self) -> None:
        """Load the roster and curriculum once per session.

        A failed read is not repeated on later reruns; see ``reload``.
        """
        if not self._attempted(STUDENT_SHEET):
            self.load_students()
        if not self._attempted(HAFALAN_SHEET):
            self.load_hafalan()

    def reload(self) -> None:
        """Re-read whatever failed, at the teacher's request."""
        failed = set(self.fetch_errors)
        if STUDENT_SHEET in failed:
            self.load_students()
        if HAFALAN_SHEET in failed:
            self.load_hafalan()
        if failed & {SCORE_SHEET, REPORT_SHEET}:
            self.load_report_view()

    def _attempted(self, collection: str) -> bool:
        return collection in self.loaded or collection in self.fetch_errors

    def load_report_view(self) -> None:
        """Load what the Report tab needs; requires the roster."""
        if not self.students:
            return
        self.load_report()
        self.load_scores()

    def _fetch(self, collection: str, read: Callable[[], T]) -> Optional[T]:
        with with_context(teacher_class=self.teacher.class_name):
            try:
                value = read()
            except RemoteFetchError as e:
                logger.warning("Could not load %s: %s", collection, e.user_message)
                self.fetch_errors[collection] = FETCH_MESSAGES[collection]
                return None
        self.fetch_errors.pop(collection, None)
        self.loaded.add(collection)
        return value

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def reset_form(self, tab: InputTab, keep_student: bool = False) -> None:
        """Put the form back to its defaults for ``tab``.

        Item and score are always cleared. The date is set to today unless
        the student is kept, in which case date and notes are kept too.
        """
        if keep_student:
            self.form = replace(self.form, category=tab.category.value, item_name="", score="")
        else:
            self.form = ScoreForm(category=tab.category.value, assessment_date=self._today_text())
        self.form_revision += 1

    def update_form(self, **values: str) -> ScoreForm:
        """Copy widget values into the form."""
        self.form = replace(self.form, **values)
        return self.form

    def validate_form(self) -> None:
        """Raise FormValidationError unless student, item and score are chosen."""
        missing = self.form.missing_fields()
        if missing:
            raise FormValidationError(INCOMPLETE_FORM, missing)

    def submit_score(self, tab: InputTab) -> Optional[WriteResult]:
        """Validate and send the score form.

        On success the form is reset for ``tab`` and the score snapshot, if
        one is loaded, is re-read. On failure the entered values are kept.
        The outcome is posted to ``status`` either way.

        Returns:
            The write result, or None if validation or the write failed.
        """
        try:
            self.validate_form()
        except FormValidationError as e:
            self.status.error(e.user_message)
            return None

        with with_context(operation="create_score", teacher_class=self.teacher.class_name):
            self.submitting = True
            self.status.clear()
            try:
                record = self.form.to_score().to_record(include_timestamp=False)
                result = self.gateway.create(SCORE_SHEET, record)
            except RemoteWriteError as e:
                logger.warning("Score was not saved: %s", e.user_message)
                self.status.error(f"Gagal mengirim data: {e.user_message or UNKNOWN_ERROR}")
                return None
            finally:
                self.submitting = False

            logger.info("Score saved")
            self.reset_form(tab)
            if SCORE_SHEET in self.loaded:
                self.load_scores()

        self.status.success(result.message)
        return result

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def find_score(self, key: str) -> ScoreRecord:
        """Look up a loaded score by its synthetic key.

        Raises:
            RecordNotFoundError: If the key is not in the current snapshot.
        """
        for record in self.score_records:
            if record.key == key:
                return record
        raise RecordNotFoundError(f"No score with key {key}")

    def begin_edit(self, key: str) -> ScoreEdit:
        """Open the edit surface on a copy of the score."""
        record = self.find_score(key)
        self.edit = ScoreEdit(original=record, draft=record.score.model_copy())
        return self.edit

    def update_draft(self, **changes: str) -> Score:
        """Change editable fields of the open draft.

        Raises:
            RecordNotFoundError: If no edit is open.
            ReadOnlyFieldError: If a change touches student, item or date.
        """
        if self.edit is None:
            raise RecordNotFoundError("No score is being edited")
        fixed = set(changes) - EDITABLE_SCORE_FIELDS
        if fixed:
            raise ReadOnlyFieldError(f"Cannot change {', '.join(sorted(fixed))}")
        self.edit.draft = self.edit.draft.model_copy(update=changes)
        return self.edit.draft

    def cancel_edit(self) -> None:
        self.edit = None

    def submit_edit(self) -> Optional[WriteResult]:
        """Send the open edit, close it, and re-read the scores.

        The original record identifies the row to replace. The edit surface
        closes whatever the outcome, and the score snapshot is re-read before
        the outcome is posted to ``status``.
        """
        edit = self.edit
        if edit is None:
            return None

        with with_context(operation="update_score", teacher_class=self.teacher.class_name):
            message = ""
            try:
                result = self.gateway.update(
                    edit.original.score.to_record(), edit.draft.to_record()
                )
            except RemoteWriteError as e:
                logger.warning("Score update failed: %s", e.user_message)
                result = None
                message = f"Gagal memperbarui data: {e.user_message or UNKNOWN_ERROR}"
            finally:
                self.edit = None

            self.load_scores()

        if result is None:
            self.status.error(message)
        else:
            self.status.success(result.message)
        return result

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def begin_delete(self, key: str) -> ScoreRecord:
        """Open the delete confirmation for a score."""
        self.delete_target = self.find_score(key)
        return self.delete_target

    def cancel_delete(self) -> None:
        self.delete_target = None

    def confirm_delete(self) -> Optional[WriteResult]:
        """Delete the confirmed score, close the dialog, re-read the scores."""
        target = self.delete_target
        if target is None:
            return None

        with with_context(operation="delete_score", teacher_class=self.teacher.class_name):
            message = ""
            try:
                result = self.gateway.delete(target.score.to_record())
            except RemoteWriteError as e:
                logger.warning("Score delete failed: %s", e.user_message)
                result = None
                message = f"Gagal menghapus data: {e.user_message or UNKNOWN_ERROR}"
            finally:
                self.delete_target = None

            self.load_scores()

        if result is None:
            self.status.error(message)
        else:
            self.status.success(result.message)
        return result

    # ------------------------------------------------------------------
    # Report rows (in memory only)
    # ------------------------------------------------------------------

    def find_report_row(self, row_id: int) -> ReportRow:
        row = self.report.find(row_id)
        if row is None:
            raise RecordNotFoundError(f"No report row {row_id}")
        return row

    def begin_report_edit(self, row_id: int) -> ReportRowEdit:
        row = self.find_report_row(row_id)
        self.report_status.clear()
        self.report_edit = ReportRowEdit(row=row, values=dict(row.values))
        return self.report_edit

    def set_report_cell(self, column: str, value: str) -> None:
        if self.report_edit is None:
            raise RecordNotFoundError("No report row is being edited")
        self.report_edit.values[column] = value

    def cancel_report_edit(self) -> None:
        self.report_edit = None

    def submit_report_edit(self) -> bool:
        """Replace the edited row in the local snapshot.

        Returns:
            True if the row was replaced.
        """
        edit = self.report_edit
        if edit is None:
            return False

        with with_context(operation="edit_report_row"):
            self._sleep(self.report_latency)
            index = self._report_index(edit.row)
            self.report_edit = None
            if index is None:
                self.report_status.error("Gagal memperbarui data: data laporan tidak ditemukan.")
                return False

            self.report.rows[index] = ReportRow(row_id=edit.row.row_id, values=dict(edit.values))
            logger.info("Report row %d updated locally", edit.row.row_id)
            self.report_status.success("Data laporan berhasil diperbarui!")
            return True

    def begin_report_delete(self, row_id: int) -> ReportRow:
        self.report_status.clear()
        self.report_delete_target = self.find_report_row(row_id)
        return self.report_delete_target

    def cancel_report_delete(self) -> None:
        self.report_delete_target = None

    def confirm_report_delete(self) -> bool:
        """Remove exactly the confirmed row from the local snapshot."""
        target = self.report_delete_target
        if target is None:
            return False

        with with_context(operation="delete_report_row"):
            self._sleep(self.report_latency)
            index = self._report_index(target)
            self.report_delete_target = None
            if index is None:
                self.report_status.error("Gagal menghapus data: data laporan tidak ditemukan.")
                return False

            del self.report.rows[index]
            logger.info("Report row %d removed locally", target.row_id)
            self.report_status.success("Data laporan berhasil dihapus!")
            return True

    def _report_index(self, row: ReportRow) -> Optional[int]:
        for index, candidate in enumerate(self.report.rows):
            if candidate is row:
                return index
        return None

    def _today_text(self) -> str:
        return self._today().isoformat()
