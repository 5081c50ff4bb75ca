from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from studyplanner.database import Base

CONTENT_TYPES = ("summary", "flashcard", "quiz")

class GeneratedContent(Base):
    """AI output for a material. Rows are never updated, new generations insert"""
    __tablename__ = "generated_content"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("study_materials.id", ondelete="CASCADE"), nullable=False)
    content_type = Column(String, nullable=False)  # summary | flashcard | quiz
    content = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    material = relationship("StudyMaterial", back_populates="generated_content")
