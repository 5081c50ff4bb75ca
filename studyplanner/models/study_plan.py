from sqlalchemy import Boolean, Column, Integer, String, Date, DateTime, JSON
from datetime import datetime
from studyplanner.database import Base

class StudyPlan(Base):
    """Generated study plan; the whole schedule lives in plan_data"""
    __tablename__ = "study_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    plan_name = Column(String, nullable=False, default="My Study Plan")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    plan_data = Column(JSON, nullable=False)  # {dailyPlan, tips, completedTasks}
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
