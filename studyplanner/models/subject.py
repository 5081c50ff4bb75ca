from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from studyplanner.database import Base

class Subject(Base):
    """A course the student is preparing exams for"""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#6366f1")
    created_at = Column(DateTime, default=datetime.utcnow)

    exams = relationship(
        "Exam",
        back_populates="subject",
        cascade="all, delete-orphan",
    )
    materials = relationship("StudyMaterial", back_populates="subject")
