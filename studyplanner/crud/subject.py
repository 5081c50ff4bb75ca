from sqlalchemy.orm import Session
from studyplanner.models import Subject
from studyplanner.schemas import SubjectCreate
from typing import List, Optional

def create_subject(db: Session, user_id: str, subject: SubjectCreate) -> Subject:
    """Create a new subject"""
    db_subject = Subject(user_id=user_id, name=subject.name.strip(), color=subject.color)
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject

def get_subject(db: Session, user_id: str, subject_id: int) -> Optional[Subject]:
    """Get a subject owned by the user"""
    return db.query(Subject).filter(
        Subject.id == subject_id,
        Subject.user_id == user_id
    ).first()

def get_subjects(db: Session, user_id: str) -> List[Subject]:
    """Get all subjects for a user, oldest first"""
    return db.query(Subject).filter(
        Subject.user_id == user_id
    ).order_by(Subject.created_at.asc(), Subject.id.asc()).all()

def update_subject(db: Session, user_id: str, subject_id: int, subject_data: dict) -> Optional[Subject]:
    """Update subject fields"""
    db_subject = get_subject(db, user_id, subject_id)
    if db_subject:
        for key, value in subject_data.items():
            setattr(db_subject, key, value)
        db.commit()
        db.refresh(db_subject)
    return db_subject

def delete_subject(db: Session, user_id: str, subject_id: int) -> bool:
    """Delete a subject together with its exams"""
    db_subject = get_subject(db, user_id, subject_id)
    if not db_subject:
        return False
    db.delete(db_subject)
    db.commit()
    return True
