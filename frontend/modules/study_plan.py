"""Study plan page - main home page of the app"""

import asyncio
from datetime import date

import streamlit as st

from studyplanner.crud import get_exams
from studyplanner.errors import StudyPlannerError
from studyplanner.planning import generate_study_plan
from studyplanner.progress import day_progress, overall_progress
from studyplanner.scheduler import STUDY_TECHNIQUES, get_scheduler
from studyplanner.schemas import ExamInput, StudyPlanRequest, Task
from studyplanner.storage import LocalObjectStorage


def show_study_plan_page(db, store):
    """Display the active study plan with completion tracking

    Args:
        db: Database session
        store: PlanStore for the current user
    """
    st.title("📅 Study Plan")

    if store.plan is None:
        _show_plan_generation_form(db, store)
        st.stop()

    _show_plan_content(store)
    _show_add_task_form(store)
    _show_action_buttons(db, store)


def _upcoming_exams(db, user_id, start_date):
    return [exam for exam in get_exams(db, user_id) if exam.exam_date >= start_date]


def _run_generation(db, store, start_date, hours, notes):
    exams = _upcoming_exams(db, store.user_id, start_date)
    if not exams:
        st.error("No upcoming exams. Add one on the Subjects & Exams page first.")
        return None

    request = StudyPlanRequest(
        exams=[
            ExamInput(
                subject=exam.subject.name,
                exam_name=exam.exam_name,
                exam_date=exam.exam_date,
                syllabus=exam.description,
                subject_id=exam.subject_id
            )
            for exam in exams
        ],
        study_hours_per_day=hours,
        start_date=start_date,
        additional_notes=notes or None
    )
    return asyncio.run(generate_study_plan(db, LocalObjectStorage(), get_scheduler(), store.user_id, request))


def _show_plan_generation_form(db, store):
    """Show form to generate a new study plan"""
    st.warning("No study plan found. Generate one using the form below.")

    exams = _upcoming_exams(db, store.user_id, date.today())
    if exams:
        st.caption("Upcoming exams: " + ", ".join(f"{e.subject.name} {e.exam_name} ({e.exam_date})" for e in exams))

    with st.form("generate_plan_form"):
        st.subheader("Generate New Study Plan")
        plan_name = st.text_input("Plan Name", value="My Study Plan")
        start_date = st.date_input("Start Date", value=date.today(), min_value=date.today())
        hours = st.number_input("Study hours per day", min_value=0.5, max_value=24.0, value=3.0, step=0.5)
        notes = st.text_area("Additional Notes (optional)", placeholder="e.g., Weak at integration, prefer mornings")
        submitted = st.form_submit_button("Generate Plan", type="primary")

    if submitted:
        with st.spinner("Generating plan with AI... This may take a moment..."):
            try:
                plan = _run_generation(db, store, start_date, hours, notes)
                if plan is not None:
                    store.create_plan(plan, plan_name)
                    st.success("✅ Study plan generated!")
                    st.rerun()
            except StudyPlannerError as e:
                st.error(e.public_message)


def _show_plan_content(store):
    plan = store.plan
    overall = overall_progress(plan.daily_plan, plan.completed_tasks)

    st.markdown(f"### {store.plan_name}")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Tasks", overall.total)
    with col2:
        st.metric("Completed", overall.completed)
    with col3:
        st.metric("Progress", f"{overall.percent}%")
    st.progress(overall.percent / 100)
    st.divider()

    today = date.today()
    for day in plan.daily_plan:
        done = day_progress(day, plan.completed_tasks)
        is_today = day.date == today
        header = f"{'🔔 ' if is_today else ''}{day.day or day.date.strftime('%A')}, {day.date.strftime('%B %d')}"
        header += f"  ({done.completed}/{done.total} done, {day.hours:g}h)"

        with st.expander(header, expanded=is_today):
            for task in day.tasks:
                _show_task_row(store, task)

    if plan.tips:
        st.subheader("💡 Tips")
        for tip in plan.tips:
            st.markdown(f"- {tip}")


def _show_task_row(store, task):
    col_check, col_subject, col_task, col_time = st.columns([0.5, 1.5, 4, 1])

    with col_check:
        checked = st.checkbox(
            "✓",
            value=store.completed_tasks.get(task.id) is True,
            key=f"check_{task.id}",
            label_visibility="collapsed"
        )

    with col_subject:
        st.markdown(f"**{task.subject}**")
        if task.exam_name:
            st.caption(task.exam_name)

    with col_task:
        st.markdown(task.text)
        if task.technique:
            st.caption(f"🧠 {task.technique}")

    with col_time:
        st.caption(f"{task.time_estimate} min")

    if checked != (store.completed_tasks.get(task.id) is True):
        try:
            store.toggle_task(task.id, checked)
        except StudyPlannerError as e:
            st.error(f"Could not save: {e.public_message}")
        st.rerun()


def _show_add_task_form(store):
    with st.expander("➕ Add a task"):
        with st.form("add_task_form", clear_on_submit=True):
            day_date = st.date_input("Date", value=date.today())
            text = st.text_input("Task")
            col1, col2, col3 = st.columns(3)
            with col1:
                subject = st.text_input("Subject")
            with col2:
                technique = st.selectbox("Technique", [""] + STUDY_TECHNIQUES)
            with col3:
                minutes = st.number_input("Minutes", min_value=5, max_value=600, value=30, step=5)
            submitted = st.form_submit_button("Add Task")

        if submitted:
            if not text.strip():
                st.warning("Enter a task description.")
                return
            try:
                store.add_task(day_date, Task(text=text, subject=subject, technique=technique, time_estimate=minutes))
                st.rerun()
            except StudyPlannerError as e:
                st.error(f"Could not save: {e.public_message}")


def _show_action_buttons(db, store):
    st.markdown("---")
    col_a, col_b = st.columns(2)

    with col_a:
        if st.button("🔄 Regenerate Plan", use_container_width=True):
            with st.spinner("Generating plan with AI..."):
                try:
                    hours = max((day.hours for day in store.plan.daily_plan), default=3) or 3
                    plan = _run_generation(db, store, date.today(), hours, None)
                    if plan is not None:
                        store.regenerate_plan(plan)
                        st.rerun()
                except StudyPlannerError as e:
                    st.error(e.public_message)

    with col_b:
        if st.button("🗑️ Delete Plan", use_container_width=True):
            try:
                store.delete_plan()
                st.rerun()
            except StudyPlannerError as e:
                st.error(e.public_message)
