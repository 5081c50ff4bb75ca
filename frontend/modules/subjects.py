"""Subjects and exams management page"""

from datetime import date

import streamlit as st

from studyplanner.crud import (
    create_exam,
    create_subject,
    delete_exam,
    delete_subject,
    get_exams,
    get_subjects
)
from studyplanner.schemas import ExamCreate, SubjectCreate


def show_subjects_page(db, user_id):
    """Add and remove subjects and their exams

    Args:
        db: Database session
        user_id: Current user
    """
    st.title("📝 Subjects & Exams")

    _show_add_subject_form(db, user_id)
    st.divider()

    subjects = get_subjects(db, user_id)
    if not subjects:
        st.info("No subjects yet. Add your first subject above.")
        return

    exams = get_exams(db, user_id)
    for subject in subjects:
        subject_exams = [exam for exam in exams if exam.subject_id == subject.id]
        with st.expander(f"{subject.name} ({len(subject_exams)} exam(s))", expanded=True):
            for exam in subject_exams:
                _show_exam_row(db, user_id, exam)
            _show_add_exam_form(db, user_id, subject)

            if st.button("Delete subject", key=f"delete_subject_{subject.id}"):
                delete_subject(db, user_id, subject.id)
                st.rerun()


def _show_add_subject_form(db, user_id):
    with st.form("add_subject_form", clear_on_submit=True):
        col1, col2 = st.columns([4, 1])
        with col1:
            name = st.text_input("Subject name", placeholder="e.g., Mathematics")
        with col2:
            color = st.color_picker("Color", value="#6366f1")
        submitted = st.form_submit_button("Add Subject", type="primary")

    if submitted:
        if not name.strip():
            st.warning("Enter a subject name.")
            return
        create_subject(db, user_id, SubjectCreate(name=name.strip(), color=color))
        st.rerun()


def _show_exam_row(db, user_id, exam):
    days_left = (exam.exam_date - date.today()).days
    col_name, col_date, col_delete = st.columns([4, 2, 1])
    with col_name:
        st.markdown(f"**{exam.exam_name}**")
        if exam.description:
            st.caption(exam.description)
    with col_date:
        st.markdown(f"{exam.exam_date.strftime('%b %d, %Y')}")
        st.caption(f"{days_left} day(s) left" if days_left >= 0 else "Past")
    with col_delete:
        if st.button("🗑️", key=f"delete_exam_{exam.id}"):
            delete_exam(db, user_id, exam.id)
            st.rerun()


def _show_add_exam_form(db, user_id, subject):
    with st.form(f"add_exam_form_{subject.id}", clear_on_submit=True):
        col1, col2 = st.columns([3, 2])
        with col1:
            exam_name = st.text_input("Exam name", placeholder="e.g., Midterm")
        with col2:
            exam_date = st.date_input("Exam date", value=date.today(), min_value=date.today())
        description = st.text_area("Syllabus / notes (optional)")
        submitted = st.form_submit_button("Add Exam")

    if submitted:
        if not exam_name.strip():
            st.warning("Enter an exam name.")
            return
        create_exam(db, user_id, subject.id, ExamCreate(
            exam_name=exam_name.strip(),
            exam_date=exam_date,
            description=description or None
        ))
        st.rerun()
