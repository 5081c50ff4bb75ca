from sqlalchemy.orm import Session
from studyplanner.models import GeneratedContent
from typing import Any, List

def save_generated_content(
    db: Session,
    user_id: str,
    material_id: int,
    content_type: str,
    content: Any
) -> GeneratedContent:
    """Insert a new generation; earlier rows are kept"""
    db_content = GeneratedContent(
        user_id=user_id,
        material_id=material_id,
        content_type=content_type,
        content=content
    )
    db.add(db_content)
    db.commit()
    db.refresh(db_content)
    return db_content

def get_generated_content(db: Session, user_id: str, material_id: int) -> List[GeneratedContent]:
    """Get every generation for a material, newest first"""
    return db.query(GeneratedContent).filter(
        GeneratedContent.user_id == user_id,
        GeneratedContent.material_id == material_id
    ).order_by(GeneratedContent.created_at.desc(), GeneratedContent.id.desc()).all()
