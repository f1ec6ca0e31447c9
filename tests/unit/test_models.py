"""Tests for the sheet models and synthetic keys."""

from datetime import date

import pytest
from pydantic import ValidationError

from hafalan_portal.portal.models import (
    INPUT_TABS,
    Category,
    HafalanItem,
    ReportTable,
    Score,
    ScoreValue,
    Student,
    index_scores,
    parse_sheet_date,
)

pytestmark = pytest.mark.unit


SCORE_ROW = {
    "Student ID": "0012345601",
    "Category": "Hafalan Surah Pendek",
    "Item Name": "Al-Fatihah",
    "Score": "BSH",
    "Date": "2024-01-05",
    "Notes": "",
    "Timestamp": "2024-01-05T08:00:00.000Z",
}


class TestParseSheetDate:
    def test_plain_date(self):
        assert parse_sheet_date("2024-01-05") == date(2024, 1, 5)

    def test_timestamp(self):
        """Only the calendar prefix of a timestamp should be read."""
        assert parse_sheet_date("2024-01-05T23:00:00.000Z") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["", None, "05/01/2024", "2024-13-40", 20240105])
    def test_unreadable(self, value):
        assert parse_sheet_date(value) is None


class TestEnums:
    def test_category_labels(self):
        assert Category.DOA.label == "Doa Sehari-hari"
        assert Category("Hafalan Hadist") is Category.HADIST

    def test_score_value_parse(self):
        """Only the exact stage codes are recognised."""
        assert ScoreValue.parse("BSB") is ScoreValue.BSB
        assert ScoreValue.parse(" bsb ") is None
        assert ScoreValue.parse("bb") is None
        assert ScoreValue.parse("A") is None
        assert ScoreValue.BB.label == "Belum Berkembang"

    def test_six_input_tabs(self):
        """Each category should have one tab per semester."""
        pairs = {(tab.category, tab.semester) for tab in INPUT_TABS.values()}
        assert len(INPUT_TABS) == 6
        assert pairs == {(c, s) for c in Category for s in (1, 2)}


class TestSheetRows:
    """Validation of raw rows as the web app returns them."""

    def test_student_numeric_nisn_becomes_text(self):
        student = Student.model_validate({"NISN": 12345603, "Name": "Umar", "Class": "1A"})
        assert student.nisn == "12345603"

    def test_hafalan_semester_is_int(self):
        item = HafalanItem.model_validate(
            {"ItemName": "An-Nas", "Category": "Hafalan Surah Pendek", "Semester": "2"}
        )
        assert item.semester == 2
        assert item.list_key == "An-Nas-2"

    def test_score_missing_column_rejected(self):
        row = dict(SCORE_ROW)
        del row["Item Name"]
        with pytest.raises(ValidationError):
            Score.model_validate(row)

    def test_score_notes_may_be_null(self):
        score = Score.model_validate({**SCORE_ROW, "Notes": None})
        assert score.notes == ""

    def test_unknown_score_value_kept_raw(self):
        """Rows with an unexpected score should still load."""
        score = Score.model_validate({**SCORE_ROW, "Score": "A+"})
        assert score.score == "A+"
        assert score.score_value is None

    def test_to_record_uses_sheet_headers(self):
        score = Score.model_validate(SCORE_ROW)
        assert score.to_record() == SCORE_ROW

    def test_to_record_without_timestamp(self):
        """New scores are sent without a timestamp."""
        record = Score.model_validate(SCORE_ROW).to_record(include_timestamp=False)
        assert "Timestamp" not in record
        assert record["Student ID"] == "0012345601"


class TestIndexScores:
    """Tests for synthetic keys."""

    def test_identical_rows_get_distinct_keys(self):
        score = Score.model_validate(SCORE_ROW)
        records = index_scores([score, score])
        assert records[0].key != records[1].key
        assert records[0].key.endswith(":0")
        assert records[1].key.endswith(":1")

    def test_keys_stable_across_reads(self):
        """Reading the same rows again should yield the same keys."""
        first = index_scores([Score.model_validate(SCORE_ROW)])
        second = index_scores([Score.model_validate(dict(SCORE_ROW))])
        assert first[0].key == second[0].key

    def test_content_change_changes_key(self):
        before = index_scores([Score.model_validate(SCORE_ROW)])
        after = index_scores([Score.model_validate({**SCORE_ROW, "Score": "BSB"})])
        assert before[0].key != after[0].key


class TestReportTable:
    def test_columns_are_ordered_union(self):
        """Columns should appear in first-seen order across all rows."""
        table = ReportTable.from_records(
            [{"Nama": "A", "Tanggal": "2024-01-01"}, {"Nama": "B", "Catatan": "x"}]
        )
        assert table.columns == ("Nama", "Tanggal", "Catatan")

    def test_absent_cell_is_none(self):
        table = ReportTable.from_records([{"Nama": "A"}, {"Nama": "B", "Kelas": 1}])
        assert table.rows[0].get("Kelas") is None
        assert table.rows[1].get("Kelas") == "1"

    def test_identical_rows_are_distinct(self):
        """Rows with the same cells should still be different rows."""
        table = ReportTable.from_records([{"Nama": "A"}, {"Nama": "A"}])
        assert table.rows[0] != table.rows[1]
        assert table.find(1) is table.rows[1]
        assert table.find(7) is None
