from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studyplanner.api.deps import get_current_user_id
from studyplanner.crud import (
    create_exam,
    create_subject,
    delete_exam,
    delete_subject,
    get_exams,
    get_subject,
    get_subjects,
    update_exam,
    update_subject
)
from studyplanner.database import get_db
from studyplanner.errors import NotFoundError, ValidationError
from studyplanner.schemas import (
    ExamCreate,
    ExamResponse,
    ExamUpdate,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate
)

router = APIRouter(tags=["subjects"])


def _subject_payload(subject) -> dict:
    return SubjectResponse.model_validate(subject).model_dump(mode="json", by_alias=True)


def _exam_payload(exam) -> dict:
    payload = ExamResponse.model_validate(exam).model_dump(mode="json", by_alias=True)
    payload["subjectName"] = exam.subject.name if exam.subject else None
    return payload


def _changes(model) -> dict:
    """Fields the client actually sent; only description may be cleared"""
    changes = {
        key: value for key, value in model.model_dump(exclude_unset=True).items()
        if value is not None or key == "description"
    }
    for key, value in list(changes.items()):
        if isinstance(value, str):
            changes[key] = value.strip()
    return changes


# ----------------------- Subjects -----------------------

@router.get("/subjects")
def list_subjects(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"subjects": [_subject_payload(s) for s in get_subjects(db, user_id)]}


@router.post("/subjects")
def add_subject(body: SubjectCreate, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    if not body.name.strip():
        raise ValidationError("Subject name is required")
    return {"subject": _subject_payload(create_subject(db, user_id, body))}


@router.put("/subjects/{subject_id}")
def edit_subject(
    subject_id: int,
    body: SubjectUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    changes = _changes(body)
    if "name" in changes and not changes["name"]:
        raise ValidationError("Subject name is required")
    subject = update_subject(db, user_id, subject_id, changes)
    if subject is None:
        raise NotFoundError(f"Subject {subject_id} not found")
    return {"subject": _subject_payload(subject)}


@router.delete("/subjects/{subject_id}")
def remove_subject(subject_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    if not delete_subject(db, user_id, subject_id):
        raise NotFoundError(f"Subject {subject_id} not found")
    return {"success": True}


# ----------------------- Exams -----------------------

@router.get("/exams")
def list_exams(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"exams": [_exam_payload(e) for e in get_exams(db, user_id)]}


@router.post("/subjects/{subject_id}/exams")
def add_exam(
    subject_id: int,
    body: ExamCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    if get_subject(db, user_id, subject_id) is None:
        raise NotFoundError(f"Subject {subject_id} not found")
    if body.exam_date < date.today():
        raise ValidationError("Exam date cannot be in the past")
    if not body.exam_name.strip():
        raise ValidationError("Exam name is required")
    return {"exam": _exam_payload(create_exam(db, user_id, subject_id, body))}


@router.put("/exams/{exam_id}")
def edit_exam(
    exam_id: int,
    body: ExamUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    changes = _changes(body)
    if "exam_name" in changes and not changes["exam_name"]:
        raise ValidationError("Exam name is required")
    exam = update_exam(db, user_id, exam_id, changes)
    if exam is None:
        raise NotFoundError(f"Exam {exam_id} not found")
    return {"exam": _exam_payload(exam)}


@router.delete("/exams/{exam_id}")
def remove_exam(exam_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    if not delete_exam(db, user_id, exam_id):
        raise NotFoundError(f"Exam {exam_id} not found")
    return {"success": True}
