from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from studyplanner.database import Base

class StudyMaterial(Base):
    """Metadata for an uploaded file; the bytes live in object storage"""
    __tablename__ = "study_materials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"))  # NULL = unassigned
    file_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False, unique=True)
    file_type = Column(String, nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow)

    subject = relationship("Subject", back_populates="materials")
    generated_content = relationship(
        "GeneratedContent",
        back_populates="material",
        cascade="all, delete-orphan",
    )
