"""Pytest configuration and fixtures for Hafalan portal tests."""

from datetime import date
from typing import Any, Optional

import pytest

from hafalan_portal.logutils import reset_config, reset_logging
from hafalan_portal.portal import PortalSession, PortalView, Teacher
from hafalan_portal.sheets import RemoteFetchError, RemoteWriteError, WriteResult


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Several components working together")


class FakeGateway:
    """In-memory gateway with the same matching rules as the web app.

    Update and delete locate the stored row by comparing every field. Calls
    are recorded so tests can assert on what was sent, and failures can be
    queued per collection or action.
    """

    def __init__(self, sheets: Optional[dict[str, list[dict[str, Any]]]] = None):
        self.sheets = {name: [dict(row) for row in rows] for name, rows in (sheets or {}).items()}
        self.calls: list[tuple] = []
        self.read_failures: dict[str, str] = {}
        self.write_failures: dict[str, str] = {}

    def read(self, collection: str) -> list[dict[str, Any]]:
        self.calls.append(("read", collection))
        if collection in self.read_failures:
            raise RemoteFetchError(collection, self.read_failures[collection])
        return [dict(row) for row in self.sheets.get(collection, [])]

    def create(self, collection: str, record: dict[str, Any]) -> WriteResult:
        self.calls.append(("create", collection, dict(record)))
        self._maybe_fail("add")
        self.sheets.setdefault(collection, []).append(dict(record))
        return WriteResult("Data berhasil disimpan.")

    def update(self, original: dict[str, Any], updated: dict[str, Any]) -> WriteResult:
        self.calls.append(("update", dict(original), dict(updated)))
        self._maybe_fail("update")
        rows = self.sheets.setdefault("Score", [])
        index = self._find(rows, original)
        rows[index] = {**rows[index], **updated}
        return WriteResult("Data berhasil diperbarui.")

    def delete(self, record: dict[str, Any]) -> WriteResult:
        self.calls.append(("delete", dict(record)))
        self._maybe_fail("delete")
        rows = self.sheets.setdefault("Score", [])
        del rows[self._find(rows, record)]
        return WriteResult("Data berhasil dihapus.")

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "read"]

    def _maybe_fail(self, action: str) -> None:
        if action in self.write_failures:
            raise RemoteWriteError(action, self.write_failures[action])

    @staticmethod
    def _find(rows: list[dict[str, Any]], record: dict[str, Any]) -> int:
        for index, row in enumerate(rows):
            if all(row.get(key) == value for key, value in record.items()):
                return index
        raise RemoteWriteError("match", "Data tidak ditemukan.")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Give every test a fresh logging configuration."""
    reset_logging()
    reset_config()
    yield
    reset_logging()
    reset_config()


@pytest.fixture
def teacher() -> Teacher:
    return Teacher(name="Bu Aisyah", class_name="1A")


@pytest.fixture
def student_rows() -> list[dict[str, Any]]:
    return [
        {"NISN": "0012345601", "Name": "Ahmad", "Class": "1A"},
        {"NISN": "0012345602", "Name": "Fatimah", "Class": "1A"},
        {"NISN": 12345603, "Name": "Umar", "Class": "1A"},
        {"NISN": "0012345699", "Name": "Zaid", "Class": "1B"},
    ]


@pytest.fixture
def hafalan_rows() -> list[dict[str, Any]]:
    return [
        {"ItemName": "Al-Fatihah", "Category": "Hafalan Surah Pendek", "Semester": 1},
        {"ItemName": "An-Nas", "Category": "Hafalan Surah Pendek", "Semester": 1},
        {"ItemName": "Al-Kautsar", "Category": "Hafalan Surah Pendek", "Semester": 2},
        {"ItemName": "Doa Sebelum Makan", "Category": "Hafalan Doa Sehari-hari", "Semester": 1},
        {"ItemName": "Doa Sebelum Tidur", "Category": "Hafalan Doa Sehari-hari", "Semester": 2},
        {"ItemName": "Hadist Kebersihan", "Category": "Hafalan Hadist", "Semester": 1},
    ]


@pytest.fixture
def score_rows() -> list[dict[str, Any]]:
    return [
        {
            "Student ID": "0012345601",
            "Category": "Hafalan Surah Pendek",
            "Item Name": "Al-Fatihah",
            "Score": "BSH",
            "Date": "2024-01-05",
            "Notes": "",
            "Timestamp": "2024-01-05T08:00:00.000Z",
        },
        {
            "Student ID": "0012345602",
            "Category": "Hafalan Doa Sehari-hari",
            "Item Name": "Doa Sebelum Makan",
            "Score": "BSB",
            "Date": "2024-03-01",
            "Notes": "Lancar",
            "Timestamp": "2024-03-01T08:00:00.000Z",
        },
        {
            "Student ID": "0012345601",
            "Category": "Hafalan Hadist",
            "Item Name": "Hadist Kebersihan",
            "Score": "MB",
            "Date": "2024-02-10",
            "Notes": "",
            "Timestamp": "2024-02-10T08:00:00.000Z",
        },
        {
            "Student ID": "0012345699",
            "Category": "Hafalan Surah Pendek",
            "Item Name": "An-Nas",
            "Score": "BB",
            "Date": "2024-02-11",
            "Notes": "",
            "Timestamp": "2024-02-11T08:00:00.000Z",
        },
    ]


@pytest.fixture
def report_rows() -> list[dict[str, Any]]:
    return [
        {"Nama": "Ahmad", "Tanggal": "2024-01-10", "Keterangan": "Hadir"},
        {"Nama": "Fatimah", "Tanggal": "2024-02-15"},
        {"Nama": "Umar", "Catatan": "Tanpa tanggal"},
    ]


@pytest.fixture
def gateway(student_rows, hafalan_rows, score_rows) -> FakeGateway:
    return FakeGateway(
        {
            "Student": student_rows,
            "Hafalan": hafalan_rows,
            "Score": score_rows,
            "Report": [],
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def session(gateway, teacher, clock, sleeps) -> PortalSession:
    return PortalSession(
        gateway,
        teacher,
        status_seconds=5.0,
        report_latency=1.0,
        clock=clock,
        sleep=sleeps.append,
        today=lambda: date(2024, 4, 1),
    )


@pytest.fixture
def loaded_session(session) -> PortalSession:
    """Session with students, curriculum and scores loaded."""
    session.load_reference_data()
    session.load_report_view()
    return session


@pytest.fixture
def view(session) -> PortalView:
    return PortalView(session, page_size=2)
