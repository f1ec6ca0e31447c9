"""Hafalan Portal - Streamlit interface for teachers.

The script is a thin renderer: every decision (filtering, pagination, what a
write does, which status to show) is made by ``PortalSession`` and
``PortalView``, which live in ``st.session_state`` across reruns.

Run with:
    streamlit run src/hafalan_portal/ui/app.py
"""

from datetime import date
from typing import Optional

import streamlit as st

from hafalan_portal.config import PortalConfig
from hafalan_portal.logutils import configure_root_logger, get_logger
from hafalan_portal.portal import (
    INPUT_TABS,
    Category,
    MainTab,
    PortalSession,
    PortalView,
    ReportMode,
    ScoreValue,
    StatusChannel,
    Teacher,
)
from hafalan_portal.portal.derived import Page
from hafalan_portal.portal.models import parse_sheet_date
from hafalan_portal.sheets import SheetsGateway

logger = get_logger(__name__)

MAIN_TAB_LABELS = {MainTab.INPUT: "📝 Input Nilai", MainTab.REPORT: "📊 Laporan"}
SCORE_OPTIONS = [value.value for value in ScoreValue]
SCORE_FILTER_KEYS = ("score_filter_student", "score_filter_start", "score_filter_end")
REPORT_FILTER_KEYS = ("report_filter_start", "report_filter_end")


def load_config() -> Optional[PortalConfig]:
    """Read configuration, showing the problem instead of a traceback."""
    try:
        return PortalConfig.from_env()
    except ValueError as e:
        st.error(f"Konfigurasi tidak valid: {e}")
        return None


def resolve_teacher(config: PortalConfig) -> Optional[Teacher]:
    """Return the configured teacher, or ask for one.

    Without ``TEACHER_NAME``/``TEACHER_CLASS`` the teacher identifies
    themselves once per browser session.
    """
    if config.has_teacher:
        return Teacher(name=config.teacher_name, class_name=config.teacher_class)

    if "teacher" in st.session_state:
        return st.session_state.teacher

    st.markdown("### 👩‍🏫 Identitas Guru")
    with st.form("teacher_form"):
        name = st.text_input("Nama Guru")
        class_name = st.text_input("Kelas")
        submitted = st.form_submit_button("Masuk")

    if submitted:
        if not name.strip() or not class_name.strip():
            st.error("Nama guru dan kelas wajib diisi.")
            return None
        st.session_state.teacher = Teacher(name=name.strip(), class_name=class_name.strip())
        st.rerun()
    return None


def init_session_state(config: PortalConfig, teacher: Teacher) -> PortalView:
    """Create the portal session on first run and return its view.

    Session State Keys:
        view: PortalView wrapping the PortalSession for this browser tab
    """
    view = st.session_state.get("view")
    if view is None or view.session.teacher != teacher:
        gateway = SheetsGateway(config.sheets_api_url, timeout=config.timeout)
        session = PortalSession(
            gateway,
            teacher,
            status_seconds=config.status_seconds,
            report_latency=config.report_latency,
        )
        view = PortalView(session, page_size=config.page_size)
        st.session_state.view = view
        logger.info("Portal session started")
    return view


def render_status(channel: StatusChannel) -> None:
    message = channel.current
    if message is None:
        return
    if message.is_error:
        st.error(f"**{message.title}** {message.message}")
    else:
        st.success(f"**{message.title}** {message.message}")


def render_fetch_error(view: PortalView) -> bool:
    """Show the open tab's load error with a retry button.

    Returns:
        True if the error leaves the tab nothing to render.
    """
    error = view.fetch_error()
    if error is None:
        return False
    blocking = view.blocking_error() is not None
    if blocking:
        st.error(error)
    else:
        st.warning(error)
    if st.button("🔄 Muat Ulang", key="reload"):
        view.session.reload()
        st.rerun()
    return blocking


def render_pagination(page: Page, key: str) -> Optional[int]:
    """Previous/next controls; returns the requested page, if any."""
    if page.total_pages <= 1:
        return None
    col_prev, col_info, col_next = st.columns([1, 2, 1])
    requested = None
    with col_prev:
        if st.button("◀ Sebelumnya", key=f"{key}_prev", disabled=not page.has_previous):
            requested = page.page - 1
    with col_info:
        st.caption(f"Halaman {page.page} dari {page.total_pages}")
    with col_next:
        if st.button("Berikutnya ▶", key=f"{key}_next", disabled=not page.has_next):
            requested = page.page + 1
    return requested


# ----------------------------------------------------------------------
# Input tab
# ----------------------------------------------------------------------


def render_input_tab(view: PortalView) -> None:
    session = view.session
    keys = list(INPUT_TABS)
    sub_tab = st.radio(
        "Kategori",
        options=keys,
        index=keys.index(view.sub_tab),
        format_func=lambda key: INPUT_TABS[key].label,
        horizontal=True,
    )
    if sub_tab != view.sub_tab:
        view.select_sub_tab(sub_tab)
        st.rerun()

    render_status(session.status)
    render_score_form(view)


def render_score_form(view: PortalView) -> None:
    """The new-score form for the active sub-tab."""
    session = view.session
    form = session.form
    tab = view.active_tab

    students = dict(view.student_options())
    student_ids = [""] + list(students)
    items = [item.item_name for item in view.hafalan_options()]
    item_options = [""] + items
    assessment_date = parse_sheet_date(form.assessment_date) or date.today()

    with st.form(f"score_form_{session.form_revision}"):
        st.markdown(f"#### {tab.label}")
        student_id = st.selectbox(
            "Siswa",
            options=student_ids,
            index=student_ids.index(form.student_id) if form.student_id in students else 0,
            format_func=lambda nisn: students.get(nisn, "Pilih siswa"),
        )
        item_name = st.selectbox(
            "Item Hafalan",
            options=item_options,
            index=item_options.index(form.item_name) if form.item_name in items else 0,
            format_func=lambda name: name or "Pilih item",
        )
        score = st.radio(
            "Penilaian",
            options=SCORE_OPTIONS,
            index=SCORE_OPTIONS.index(form.score) if form.score in SCORE_OPTIONS else None,
            format_func=lambda value: f"{value} - {ScoreValue(value).label}",
        )
        picked_date = st.date_input("Tanggal", value=assessment_date)
        notes = st.text_area("Catatan", value=form.notes)
        submitted = st.form_submit_button("💾 Simpan Nilai")

    if not items:
        st.caption("Belum ada item hafalan untuk kategori dan semester ini.")

    if submitted:
        session.update_form(
            student_id=student_id or "",
            item_name=item_name or "",
            score=score or "",
            assessment_date=picked_date.isoformat(),
            notes=notes,
        )
        with st.spinner("Mengirim data..."):
            session.submit_score(tab)
        st.rerun()


# ----------------------------------------------------------------------
# Report tab
# ----------------------------------------------------------------------


def render_report_tab(view: PortalView) -> None:
    session = view.session
    if not session.students:
        st.info("Belum ada data siswa untuk kelas ini.")
        return

    if view.report_mode() == ReportMode.REPORT_ROWS:
        render_report_table(view)
    else:
        render_status(session.status)
        render_score_report(view)


def _reset_score_filters(view: PortalView) -> None:
    view.score_filters.reset()
    for key in SCORE_FILTER_KEYS:
        st.session_state.pop(key, None)


def render_score_filters(view: PortalView) -> None:
    students = dict(view.student_options())
    col_student, col_start, col_end, col_reset = st.columns([2, 1, 1, 1])
    with col_student:
        student_id = st.selectbox(
            "Siswa",
            options=[""] + list(students),
            format_func=lambda nisn: students.get(nisn, "Semua siswa"),
            key="score_filter_student",
        )
    with col_start:
        start = st.date_input("Dari tanggal", value=None, key="score_filter_start")
    with col_end:
        end = st.date_input("Sampai tanggal", value=None, key="score_filter_end")
    with col_reset:
        st.button("Reset Filter", on_click=_reset_score_filters, args=(view,), key="score_filter_reset")

    view.score_filters.update(
        student_id=student_id or "",
        start_date=start.isoformat() if start else "",
        end_date=end.isoformat() if end else "",
    )


def render_score_report(view: PortalView) -> None:
    """Score table with edit/delete actions and per-category charts."""
    session = view.session
    render_score_filters(view)
    report = view.build_score_report()

    st.caption(f"Menampilkan {report.filtered_count} dari {report.total_count} penilaian")
    if report.no_match:
        st.info("Tidak ada data yang sesuai dengan filter.")
    elif report.total_count == 0:
        st.info("Belum ada data penilaian.")

    if report.rows:
        widths = [0.5, 2, 2, 2, 1, 1.3, 2, 1.2]
        header = st.columns(widths)
        for column, title in zip(
            header, ["No", "Siswa", "Kategori", "Item", "Nilai", "Tanggal", "Catatan", "Aksi"]
        ):
            column.markdown(f"**{title}**")

        for row in report.rows:
            cells = st.columns(widths)
            cells[0].write(row.number)
            cells[1].write(row.student)
            cells[2].write(row.category)
            cells[3].write(row.item_name)
            cells[4].write(row.score)
            cells[5].write(row.date)
            cells[6].write(row.notes)
            with cells[7]:
                if st.button("✏️", key=f"edit_{row.key}", help="Edit"):
                    session.begin_edit(row.key)
                    st.rerun()
                if st.button("🗑️", key=f"delete_{row.key}", help="Hapus"):
                    session.begin_delete(row.key)
                    st.rerun()

    requested = render_pagination(report.page, "score_page")
    if requested is not None:
        view.score_filters.page = requested
        st.rerun()

    render_score_edit(session)
    render_score_delete(session)

    st.markdown("### 📈 Distribusi Nilai")
    for column, chart in zip(st.columns(len(Category)), report.charts):
        with column:
            st.markdown(f"**{chart.title}**")
            st.bar_chart(chart.as_columns(), x="Nilai", y="Jumlah")


def render_score_edit(session: PortalSession) -> None:
    edit = session.edit
    if edit is None:
        return

    draft = edit.draft
    categories = [category.value for category in Category]
    with st.form("score_edit_form"):
        st.markdown("#### ✏️ Edit Penilaian")
        st.text_input("Siswa", value=draft.student_id, disabled=True)
        st.text_input("Item Hafalan", value=draft.item_name, disabled=True)
        st.text_input("Tanggal", value=draft.assessment_date, disabled=True)
        category = st.selectbox(
            "Kategori",
            options=categories,
            index=categories.index(draft.category) if draft.category in categories else 0,
        )
        score = st.radio(
            "Penilaian",
            options=SCORE_OPTIONS,
            index=SCORE_OPTIONS.index(draft.score) if draft.score in SCORE_OPTIONS else None,
            horizontal=True,
        )
        notes = st.text_area("Catatan", value=draft.notes)
        col_save, col_cancel = st.columns(2)
        save = col_save.form_submit_button("💾 Simpan")
        cancel = col_cancel.form_submit_button("Batal")

    if cancel:
        session.cancel_edit()
        st.rerun()
    if save:
        session.update_draft(category=category, score=score or draft.score, notes=notes)
        with st.spinner("Memperbarui data..."):
            session.submit_edit()
        st.rerun()


def render_score_delete(session: PortalSession) -> None:
    target = session.delete_target
    if target is None:
        return

    score = target.score
    st.warning(
        f"Hapus penilaian **{score.item_name}** ({score.score}, {score.assessment_date})? "
        "Data yang dihapus tidak dapat dikembalikan."
    )
    col_confirm, col_cancel = st.columns(2)
    if col_confirm.button("Ya, hapus", key="confirm_delete", type="primary"):
        with st.spinner("Menghapus data..."):
            session.confirm_delete()
        st.rerun()
    if col_cancel.button("Batal", key="cancel_delete"):
        session.cancel_delete()
        st.rerun()


def _reset_report_filters(view: PortalView) -> None:
    view.report_filters.reset()
    for key in REPORT_FILTER_KEYS:
        st.session_state.pop(key, None)


def render_report_table(view: PortalView) -> None:
    """Generic table over whatever columns the Report sheet has."""
    session = view.session
    render_status(session.report_status)

    col_start, col_end, col_reset = st.columns([1, 1, 1])
    with col_start:
        start = st.date_input("Dari tanggal", value=None, key="report_filter_start")
    with col_end:
        end = st.date_input("Sampai tanggal", value=None, key="report_filter_end")
    with col_reset:
        st.button("Reset Filter", on_click=_reset_report_filters, args=(view,), key="report_filter_reset")
    view.report_filters.update(
        start_date=start.isoformat() if start else "",
        end_date=end.isoformat() if end else "",
    )

    table = view.build_report_table()
    st.caption(f"Menampilkan {table.filtered_count} dari {table.total_count} baris laporan")
    if table.filtered_count == 0:
        st.info("Tidak ada data yang sesuai dengan filter.")

    widths = [0.5] + [2] * len(table.columns) + [1.2]
    header = st.columns(widths)
    for column, title in zip(header, ["No", *table.columns, "Aksi"]):
        column.markdown(f"**{title}**")

    for number, row in table.rows:
        cells = st.columns(widths)
        cells[0].write(number)
        for cell, column in zip(cells[1:-1], table.columns):
            cell.write(table.cell(row, column))
        with cells[-1]:
            if st.button("✏️", key=f"report_edit_{row.row_id}", help="Edit"):
                session.begin_report_edit(row.row_id)
                st.rerun()
            if st.button("🗑️", key=f"report_delete_{row.row_id}", help="Hapus"):
                session.begin_report_delete(row.row_id)
                st.rerun()

    requested = render_pagination(table.page, "report_page")
    if requested is not None:
        view.report_filters.page = requested
        st.rerun()

    render_report_edit(session, table.columns)
    render_report_delete(session)


def render_report_edit(session: PortalSession, columns: tuple[str, ...]) -> None:
    edit = session.report_edit
    if edit is None:
        return

    with st.form(f"report_edit_form_{edit.row.row_id}"):
        st.markdown("#### ✏️ Edit Data Laporan")
        values = {
            column: st.text_input(column, value=edit.values.get(column) or "")
            for column in columns
        }
        col_save, col_cancel = st.columns(2)
        save = col_save.form_submit_button("💾 Simpan")
        cancel = col_cancel.form_submit_button("Batal")

    if cancel:
        session.cancel_report_edit()
        st.rerun()
    if save:
        for column, value in values.items():
            session.set_report_cell(column, value)
        with st.spinner("Memperbarui data..."):
            session.submit_report_edit()
        st.rerun()


def render_report_delete(session: PortalSession) -> None:
    target = session.report_delete_target
    if target is None:
        return

    st.warning("Hapus baris laporan ini? Data yang dihapus tidak dapat dikembalikan.")
    col_confirm, col_cancel = st.columns(2)
    if col_confirm.button("Ya, hapus", key="confirm_report_delete", type="primary"):
        with st.spinner("Menghapus data..."):
            session.confirm_report_delete()
        st.rerun()
    if col_cancel.button("Batal", key="cancel_report_delete"):
        session.cancel_report_delete()
        st.rerun()


# ----------------------------------------------------------------------
# Page
# ----------------------------------------------------------------------


def render_main_app(view: PortalView) -> None:
    session = view.session
    teacher = session.teacher

    with st.sidebar:
        st.header("👩‍🏫 Guru")
        st.markdown(f"**{teacher.name}**")
        st.markdown(f"Kelas: **{teacher.class_name}**")
        st.caption(f"{len(session.students)} siswa")

    st.title("📖 Portal Penilaian Hafalan")

    tabs = list(MAIN_TAB_LABELS)
    main_tab = st.radio(
        "Menu",
        options=tabs,
        index=tabs.index(view.main_tab),
        format_func=MAIN_TAB_LABELS.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    if main_tab != view.main_tab:
        with st.spinner("Memuat data..."):
            view.select_main_tab(main_tab)
        st.rerun()

    if render_fetch_error(view):
        return

    if view.main_tab == MainTab.INPUT:
        render_input_tab(view)
    else:
        render_report_tab(view)


def main() -> None:
    """Main entry point for the Streamlit app.

    Orchestrates the application flow:
    1. Configure logging and read configuration
    2. Resolve the teacher for this session
    3. Load students and curriculum once
    4. Render the selected tab
    """
    configure_root_logger()
    st.set_page_config(page_title="Portal Hafalan", page_icon="📖", layout="wide")

    config = load_config()
    if config is None:
        return

    teacher = resolve_teacher(config)
    if teacher is None:
        return

    view = init_session_state(config, teacher)
    with st.spinner("Memuat data siswa..."):
        view.session.load_reference_data()

    render_main_app(view)


if __name__ == "__main__":
    main()
