from sqlalchemy.orm import Session
from studyplanner.models import StudyPlan
from datetime import date
from typing import Optional

def save_study_plan(
    db: Session,
    user_id: str,
    plan_data: dict,
    start_date: date,
    end_date: Optional[date] = None,
    plan_name: Optional[str] = None
) -> StudyPlan:
    """Save a new plan and make it the user's only active plan"""
    db.query(StudyPlan).filter(
        StudyPlan.user_id == user_id,
        StudyPlan.is_active.is_(True)
    ).update({StudyPlan.is_active: False}, synchronize_session=False)

    db_plan = StudyPlan(
        user_id=user_id,
        plan_name=plan_name or "My Study Plan",
        start_date=start_date,
        end_date=end_date,
        plan_data=plan_data,
        is_active=True
    )
    db.add(db_plan)
    db.commit()
    db.refresh(db_plan)
    return db_plan

def get_active_study_plan(db: Session, user_id: str) -> Optional[StudyPlan]:
    """Get the current plan (most recent active row)"""
    return db.query(StudyPlan).filter(
        StudyPlan.user_id == user_id,
        StudyPlan.is_active.is_(True)
    ).order_by(StudyPlan.created_at.desc(), StudyPlan.id.desc()).first()

def get_study_plan(db: Session, user_id: str, plan_id: int) -> Optional[StudyPlan]:
    return db.query(StudyPlan).filter(
        StudyPlan.id == plan_id,
        StudyPlan.user_id == user_id
    ).first()

def update_study_plan(
    db: Session,
    user_id: str,
    plan_id: int,
    completed_tasks: Optional[dict] = None,
    plan_data: Optional[dict] = None
) -> Optional[StudyPlan]:
    """
    Merge updates onto the stored plan document.

    plan_data keys overwrite the stored ones; completed_tasks replaces the
    completion map wholesale when given, otherwise the stored map is kept.
    """
    db_plan = get_study_plan(db, user_id, plan_id)
    if not db_plan:
        return None

    existing = dict(db_plan.plan_data or {})
    merged = {**existing, **(plan_data or {})}
    if completed_tasks is not None:
        merged["completedTasks"] = completed_tasks
    else:
        merged["completedTasks"] = existing.get("completedTasks") or {}

    # Reassign so the JSON column is flagged dirty
    db_plan.plan_data = merged
    db.commit()
    db.refresh(db_plan)
    return db_plan

def delete_study_plan(db: Session, user_id: str, plan_id: int) -> bool:
    db_plan = get_study_plan(db, user_id, plan_id)
    if not db_plan:
        return False
    db.delete(db_plan)
    db.commit()
    return True
