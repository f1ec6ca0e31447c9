"""End-to-end portal flows against the in-memory gateway."""

import pytest

from hafalan_portal.portal import MainTab

pytestmark = pytest.mark.integration


def test_input_then_report(view, gateway):
    """A score entered on the Input tab shows up on the Report tab."""
    session = view.session
    session.load_reference_data()

    view.select_sub_tab("surah2")
    session.update_form(
        student_id="12345603",
        item_name=view.hafalan_options()[0].item_name,
        score="BSB",
        assessment_date="2024-04-01",
    )
    assert session.submit_score(view.active_tab) is not None

    view.select_main_tab(MainTab.REPORT)
    report = view.build_score_report()

    newest = report.rows[0]
    assert (newest.student, newest.item_name, newest.score) == ("Umar", "Al-Kautsar", "BSB")
    assert report.total_count == 4


def test_edit_then_delete_from_report(view, gateway):
    session = view.session
    session.load_reference_data()
    view.select_main_tab(MainTab.REPORT)

    first = view.build_score_report().rows[0]
    session.begin_edit(first.key)
    session.update_draft(score="MB")
    session.submit_edit()

    edited = view.build_score_report().rows[0]
    assert edited.score == "MB"
    assert edited.key != first.key

    session.begin_delete(edited.key)
    session.confirm_delete()

    report = view.build_score_report()
    assert report.total_count == 2
    assert edited.key not in [row.key for row in report.rows]
    assert len(gateway.sheets["Score"]) == 3


def test_filter_change_returns_to_first_page(view):
    view.session.load_reference_data()
    view.select_main_tab(MainTab.REPORT)
    view.score_filters.page = 2
    view.build_score_report()

    view.score_filters.update(student_id="0012345601")
    report = view.build_score_report()

    assert report.page.page == 1
    assert {row.student for row in report.rows} == {"Ahmad"}
