"""Exam Study Planner - Main application file"""

import streamlit as st

from studyplanner.config import settings
from studyplanner.database import SessionLocal, init_db
from studyplanner.logging_config import configure_logging
from studyplanner.plan_store import PlanStore

# Import page modules
from modules.study_plan import show_study_plan_page
from modules.progress_report import show_progress_report_page
from modules.subjects import show_subjects_page
from modules.materials import show_materials_page

configure_logging()

# Initialize database
init_db()

# ===================================================================
# PAGE CONFIGURATION & SESSION STATE
# ===================================================================

st.set_page_config(
    page_title="Exam Study Planner",
    page_icon="📚",
    layout="wide"
)

if 'user_id' not in st.session_state:
    st.session_state.user_id = settings.local_user_id

# One plan store per browser session; it holds the optimistic local snapshot
if 'plan_store' not in st.session_state:
    store = PlanStore(SessionLocal, st.session_state.user_id)
    store.load()
    st.session_state.plan_store = store


# Get database session
@st.cache_resource
def get_db():
    return SessionLocal()


db = get_db()

# ===================================================================
# SIDEBAR NAVIGATION
# ===================================================================

st.sidebar.title("📚 Exam Study Planner")
st.sidebar.markdown(f"**User:** {st.session_state.user_id}")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["📅 Study Plan", "📊 Progress Report", "📝 Subjects & Exams", "📤 Study Materials"]
)

# ===================================================================
# PAGE ROUTING
# ===================================================================

if page == "📅 Study Plan":
    show_study_plan_page(db, st.session_state.plan_store)

elif page == "📊 Progress Report":
    show_progress_report_page(st.session_state.plan_store)

elif page == "📝 Subjects & Exams":
    show_subjects_page(db, st.session_state.user_id)

elif page == "📤 Study Materials":
    show_materials_page(db, st.session_state.user_id)

# ===================================================================
# FOOTER
# ===================================================================

st.sidebar.divider()
st.sidebar.caption("Exam Study Planner v1.0")
st.sidebar.caption(f"Powered by {settings.ai_provider.title()}")
