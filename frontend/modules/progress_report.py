"""Progress report / analytics dashboard page"""

from datetime import date

import pandas as pd
import streamlit as st

from studyplanner.progress import day_progress, overall_progress, subjects_progress, today_plan


def show_progress_report_page(store):
    """Display study progress for the active plan

    Args:
        store: PlanStore for the current user
    """
    st.title("📊 Progress Report")

    if store.plan is None:
        st.info("No study plan yet. Generate one on the Study Plan page.")
        return

    plan = store.plan
    _show_key_metrics(plan)
    st.divider()
    _show_subject_progress(plan)
    _show_daily_breakdown(plan)


def _show_key_metrics(plan):
    """Display key metrics at the top"""
    overall = overall_progress(plan.daily_plan, plan.completed_tasks)
    current = today_plan(plan.daily_plan)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Overall", f"{overall.percent}%", delta=f"{overall.completed}/{overall.total} tasks")
    with col2:
        if current:
            done = day_progress(current, plan.completed_tasks)
            label = "Today" if current.date == date.today() else f"Day of {current.date}"
            st.metric(label, f"{done.percent}%", delta=f"{done.completed}/{done.total} tasks")
        else:
            st.metric("Today", "-")
    with col3:
        remaining = [day for day in plan.daily_plan if day.date >= date.today()]
        st.metric("Days Left", len(remaining))


def _show_subject_progress(plan):
    """Display subject-wise progress bars"""
    st.subheader("📚 Subject-wise Progress")

    by_subject = subjects_progress(plan.daily_plan, plan.completed_tasks)
    if not by_subject:
        st.caption("No tasks in this plan.")
        return

    df_subjects = pd.DataFrame(
        [{"subject": subject or "Other", "percent": percent} for subject, percent in by_subject.items()]
    )

    for _, row in df_subjects.iterrows():
        col_name, col_bar = st.columns([2, 5])
        with col_name:
            st.markdown(f"**{row['subject']}**")
        with col_bar:
            color = "🟢" if row['percent'] >= 80 else "🟡" if row['percent'] >= 40 else "🔴"
            st.progress(row['percent'] / 100, text=f"{color} {row['percent']}%")


def _show_daily_breakdown(plan):
    """Table of completed vs planned tasks per day"""
    st.subheader("🗓️ Daily Breakdown")

    rows = []
    for day in plan.daily_plan:
        done = day_progress(day, plan.completed_tasks)
        rows.append({
            "Date": day.date,
            "Day": day.day,
            "Planned hours": day.hours,
            "Tasks": done.total,
            "Completed": done.completed,
            "Progress %": done.percent,
        })

    df_days = pd.DataFrame(rows)
    if df_days.empty:
        st.caption("No days planned.")
        return

    st.dataframe(df_days, use_container_width=True, hide_index=True)
    st.bar_chart(df_days.set_index("Date")[["Tasks", "Completed"]])
