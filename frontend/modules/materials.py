"""Study material upload and AI study aids page"""

from pathlib import Path

import streamlit as st

from studyplanner import content_generator
from studyplanner.config import settings
from studyplanner.crud import (
    create_material,
    delete_material,
    get_materials,
    get_subjects,
    save_generated_content
)
from studyplanner.errors import StudyPlannerError
from studyplanner.extraction import SUPPORTED_EXTENSIONS, extract_text
from studyplanner.storage import LocalObjectStorage


def show_materials_page(db, user_id):
    """Upload materials and turn them into summaries, flashcards and quizzes

    Args:
        db: Database session
        user_id: Current user
    """
    st.title("📤 Study Materials")

    storage = LocalObjectStorage()
    _show_upload_form(db, user_id, storage)
    st.divider()

    materials = get_materials(db, user_id)
    if not materials:
        st.info("No materials uploaded yet.")
        return

    for material in materials:
        with st.expander(f"📄 {material.file_name}"):
            _show_material_tools(db, user_id, storage, material)


def _show_upload_form(db, user_id, storage):
    subjects = get_subjects(db, user_id)
    subject_options = {"(none)": None}
    subject_options.update({subject.name: subject.id for subject in subjects})

    uploaded_file = st.file_uploader(
        "Upload a PDF, DOCX, PPTX or TXT file",
        type=[ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS]
    )
    subject_name = st.selectbox("Subject", list(subject_options.keys()))

    if uploaded_file is not None and st.button("Save Material", type="primary"):
        data = uploaded_file.getvalue()
        if len(data) > settings.max_upload_bytes:
            st.error("File is too large.")
            return

        file_path = storage.save(user_id, uploaded_file.name, data)
        create_material(
            db,
            user_id,
            uploaded_file.name,
            file_path,
            Path(uploaded_file.name).suffix.lower().lstrip("."),
            subject_options[subject_name]
        )
        st.success(f"File uploaded: {uploaded_file.name}")
        st.rerun()


def _material_text(storage, material):
    key = f"text_{material.id}"
    if key not in st.session_state:
        st.session_state[key] = extract_text(material.file_name, storage.download(material.file_path))
    return st.session_state[key]


def _show_material_tools(db, user_id, storage, material):
    col_level, col_summary, col_cards, col_quiz, col_delete = st.columns([2, 1, 1, 1, 1])

    with col_level:
        detail_level = st.selectbox(
            "Detail", list(content_generator.DETAIL_LEVELS.keys()), index=1,
            key=f"level_{material.id}", label_visibility="collapsed"
        )

    action = None
    with col_summary:
        if st.button("Summary", key=f"summary_{material.id}"):
            action = "summary"
    with col_cards:
        if st.button("Flashcards", key=f"cards_{material.id}"):
            action = "flashcard"
    with col_quiz:
        if st.button("Quiz", key=f"quiz_{material.id}"):
            action = "quiz"
    with col_delete:
        if st.button("🗑️", key=f"delete_material_{material.id}"):
            storage.delete(material.file_path)
            delete_material(db, user_id, material.id)
            st.rerun()

    if action is None:
        return

    with st.spinner("Asking the model..."):
        try:
            text = _material_text(storage, material)
            if action == "summary":
                summary = content_generator.generate_summary(text, detail_level)
                save_generated_content(db, user_id, material.id, "summary", {"summary": summary, "detailLevel": detail_level})
                st.markdown(summary)
            elif action == "flashcard":
                cards = content_generator.generate_flashcards(text)
                save_generated_content(db, user_id, material.id, "flashcard", [card.model_dump() for card in cards])
                for card in cards:
                    st.markdown(f"**Q:** {card.question}  \n**A:** {card.answer}  \n_{card.difficulty}_")
            else:
                quiz = content_generator.generate_quiz(text)
                save_generated_content(db, user_id, material.id, "quiz", [q.model_dump(by_alias=True) for q in quiz])
                for i, question in enumerate(quiz, 1):
                    st.markdown(f"**{i}. {question.question}**")
                    for j, option in enumerate(question.options):
                        marker = "✅" if j == question.correct_answer else "▫️"
                        st.markdown(f"{marker} {option}")
                    if question.explanation:
                        st.caption(question.explanation)
        except StudyPlannerError as e:
            st.error(e.public_message)
