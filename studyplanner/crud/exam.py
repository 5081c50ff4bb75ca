from sqlalchemy.orm import Session, joinedload
from studyplanner.models import Exam
from studyplanner.schemas import ExamCreate
from typing import List, Optional

def create_exam(db: Session, user_id: str, subject_id: int, exam: ExamCreate) -> Exam:
    """Create an exam under a subject"""
    db_exam = Exam(user_id=user_id, subject_id=subject_id, **exam.model_dump())
    db.add(db_exam)
    db.commit()
    db.refresh(db_exam)
    return db_exam

def get_exam(db: Session, user_id: str, exam_id: int) -> Optional[Exam]:
    return db.query(Exam).filter(Exam.id == exam_id, Exam.user_id == user_id).first()

def get_exams(db: Session, user_id: str, subject_id: Optional[int] = None) -> List[Exam]:
    """Get exams ordered by date, optionally for one subject"""
    query = db.query(Exam).options(joinedload(Exam.subject)).filter(Exam.user_id == user_id)
    if subject_id is not None:
        query = query.filter(Exam.subject_id == subject_id)
    return query.order_by(Exam.exam_date.asc(), Exam.id.asc()).all()

def update_exam(db: Session, user_id: str, exam_id: int, exam_data: dict) -> Optional[Exam]:
    db_exam = get_exam(db, user_id, exam_id)
    if db_exam:
        for key, value in exam_data.items():
            setattr(db_exam, key, value)
        db.commit()
        db.refresh(db_exam)
    return db_exam

def delete_exam(db: Session, user_id: str, exam_id: int) -> bool:
    db_exam = get_exam(db, user_id, exam_id)
    if not db_exam:
        return False
    db.delete(db_exam)
    db.commit()
    return True
