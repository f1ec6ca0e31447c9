"""UI-free core of the portal: models, derived views, controller, navigation."""

from .controller import PortalSession, ReportRowEdit, ScoreEdit, ScoreForm
from .errors import FormValidationError, ReadOnlyFieldError, RecordNotFoundError
from .models import (
    DEFAULT_TAB,
    INPUT_TABS,
    Category,
    HafalanItem,
    InputTab,
    ReportRow,
    ReportTable,
    Score,
    ScoreRecord,
    ScoreValue,
    Student,
    Teacher,
)
from .status import StatusChannel, StatusKind, StatusMessage
from .views import MainTab, PortalView, ReportFilters, ReportMode, ScoreFilters

__all__ = [
    "Category",
    "DEFAULT_TAB",
    "FormValidationError",
    "HafalanItem",
    "INPUT_TABS",
    "InputTab",
    "MainTab",
    "PortalSession",
    "PortalView",
    "ReadOnlyFieldError",
    "RecordNotFoundError",
    "ReportFilters",
    "ReportMode",
    "ReportRow",
    "ReportRowEdit",
    "ReportTable",
    "Score",
    "ScoreEdit",
    "ScoreFilters",
    "ScoreForm",
    "ScoreRecord",
    "ScoreValue",
    "StatusChannel",
    "StatusKind",
    "StatusMessage",
    "Student",
    "Teacher",
]
