"""Pydantic models for the spreadsheet collections.

Field aliases are the column headers used in the sheets, so rows read from
the gateway validate directly and ``to_record()`` produces rows the web app
understands.
"""

import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_DATE_PREFIX = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})")


def parse_sheet_date(value: Any) -> Optional[date]:
    """Read the calendar date at the start of a sheet value.

    Handles plain ``YYYY-MM-DD`` strings as well as full ISO timestamps the
    web app produces for date cells. Returns None for anything else.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _DATE_PREFIX.match(value)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def _as_text(value: Any) -> Any:
    # Sheets hand back numeric-looking cells (NISN, semester) as numbers
    if value is None:
        return value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value) if not isinstance(value, str) else value


class Category(str, Enum):
    """Memorization category, valued as stored in the sheets."""

    SURAH_PENDEK = "Hafalan Surah Pendek"
    DOA = "Hafalan Doa Sehari-hari"
    HADIST = "Hafalan Hadist"

    @property
    def label(self) -> str:
        return self.value.removeprefix("Hafalan ")


class ScoreValue(str, Enum):
    """Developmental stage, in increasing order of mastery."""

    BB = "BB"
    MB = "MB"
    BSH = "BSH"
    BSB = "BSB"

    @property
    def label(self) -> str:
        return SCORE_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["ScoreValue"]:
        """Return the stage for an exact sheet value, or None if unrecognised."""
        try:
            return cls(value)
        except ValueError:
            return None


SCORE_LABELS = {
    ScoreValue.BB: "Belum Berkembang",
    ScoreValue.MB: "Mulai Berkembang",
    ScoreValue.BSH: "Berkembang Sesuai Harapan",
    ScoreValue.BSB: "Berkembang Sangat Baik",
}


class Teacher(BaseModel):
    """The signed-in teacher; scopes which students are visible."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="Name")
    class_name: str = Field(alias="Class")


class Student(BaseModel):
    """Student row from the ``Student`` sheet."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    nisn: str = Field(alias="NISN")
    name: str = Field(alias="Name")
    class_name: str = Field(alias="Class")

    @field_validator("nisn", "name", "class_name", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class HafalanItem(BaseModel):
    """Curriculum item from the ``Hafalan`` sheet."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    item_name: str = Field(alias="ItemName")
    category: str = Field(alias="Category")
    semester: int = Field(alias="Semester")

    @field_validator("item_name", "category", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @property
    def list_key(self) -> str:
        return f"{self.item_name}-{self.semester}"


class Score(BaseModel):
    """Assessment row from the ``Score`` sheet.

    ``timestamp`` is written by the web app and never sent on create.
    ``score`` stays a plain string so rows with unexpected values still load.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    student_id: str = Field(alias="Student ID")
    category: str = Field(alias="Category")
    item_name: str = Field(alias="Item Name")
    score: str = Field(alias="Score")
    assessment_date: str = Field(alias="Date")
    notes: str = Field(default="", alias="Notes")
    timestamp: Optional[str] = Field(default=None, alias="Timestamp")

    @field_validator(
        "student_id",
        "category",
        "item_name",
        "score",
        "assessment_date",
        "timestamp",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("notes", mode="before")
    @classmethod
    def coerce_notes(cls, value: Any) -> str:
        return "" if value is None else _as_text(value)

    @property
    def score_value(self) -> Optional[ScoreValue]:
        return ScoreValue.parse(self.score)

    @property
    def parsed_date(self) -> Optional[date]:
        return parse_sheet_date(self.assessment_date)

    def to_record(self, include_timestamp: bool = True) -> dict[str, Any]:
        """Serialize with sheet column headers."""
        exclude = None if include_timestamp and self.timestamp is not None else {"timestamp"}
        return self.model_dump(by_alias=True, exclude=exclude)


@dataclass(frozen=True)
class ScoreRecord:
    """A score as read, paired with its synthetic key.

    The sheet has no primary key, so the key is derived from the row's
    content plus how many identical rows precede it in the same read.
    """

    key: str
    score: Score

    @property
    def student_id(self) -> str:
        return self.score.student_id

    @property
    def category(self) -> str:
        return self.score.category

    @property
    def parsed_date(self) -> Optional[date]:
        return self.score.parsed_date

    @property
    def score_value(self) -> Optional[ScoreValue]:
        return self.score.score_value


def score_fingerprint(score: Score) -> str:
    """Stable content hash of every field of a score row."""
    payload = json.dumps(score.to_record(), sort_keys=True, ensure_ascii=False)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:16]


def index_scores(scores: Iterable[Score]) -> list[ScoreRecord]:
    """Assign synthetic keys to scores in read order."""
    seen: dict[str, int] = {}
    records = []
    for score in scores:
        fingerprint = score_fingerprint(score)
        occurrence = seen.get(fingerprint, 0)
        seen[fingerprint] = occurrence + 1
        records.append(ScoreRecord(key=f"{fingerprint}:{occurrence}", score=score))
    return records


@dataclass(eq=False)
class ReportRow:
    """A row of the ``Report`` sheet with a read-time identity.

    Rows compare by identity, never by content: two rows with the same cells
    are still different rows.
    """

    row_id: int
    values: dict[str, str]

    def get(self, column: str) -> Optional[str]:
        """Return the cell for ``column``, or None if the row lacks it."""
        return self.values.get(column)


@dataclass
class ReportTable:
    """Snapshot of the ``Report`` sheet with its column set.

    Columns are the ordered union of the keys of all rows, in first-seen
    order, derived once per fetch.
    """

    columns: tuple[str, ...] = ()
    rows: list[ReportRow] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "ReportTable":
        columns: dict[str, None] = {}
        rows = []
        for row_id, record in enumerate(records):
            values = {str(k): _as_text(v) for k, v in record.items() if v is not None}
            for column in values:
                columns.setdefault(column, None)
            rows.append(ReportRow(row_id=row_id, values=values))
        return cls(columns=tuple(columns), rows=rows)

    def __len__(self) -> int:
        return len(self.rows)

    def find(self, row_id: int) -> Optional[ReportRow]:
        for row in self.rows:
            if row.row_id == row_id:
                return row
        return None


@dataclass(frozen=True)
class InputTab:
    """One of the six input sub-tabs: a category within a semester."""

    key: str
    label: str
    category: Category
    semester: int


INPUT_TABS: dict[str, InputTab] = {
    tab.key: tab
    for tab in (
        InputTab("surah1", "Semester 1 - Surah Pendek", Category.SURAH_PENDEK, 1),
        InputTab("surah2", "Semester 2 - Surah Pendek", Category.SURAH_PENDEK, 2),
        InputTab("doa1", "Semester 1 - Doa Sehari-hari", Category.DOA, 1),
        InputTab("doa2", "Semester 2 - Doa Sehari-hari", Category.DOA, 2),
        InputTab("hadist1", "Semester 1 - Hadist", Category.HADIST, 1),
        InputTab("hadist2", "Semester 2 - Hadist", Category.HADIST, 2),
    )
}

DEFAULT_TAB = "surah1"
