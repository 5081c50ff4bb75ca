from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from studyplanner import progress
from studyplanner.api.deps import get_current_user_id
from studyplanner.crud import (
    delete_study_plan,
    get_active_study_plan,
    get_study_plan,
    save_study_plan,
    update_study_plan
)
from studyplanner.database import get_db
from studyplanner.errors import NotFoundError, ValidationError
from studyplanner.plan_store import plan_date_range
from studyplanner.scheduler import merge_days
from studyplanner.schemas import DailyPlan, PlanData, StudyPlanCreate, StudyPlanResponse, StudyPlanUpdate

router = APIRouter(prefix="/study-plans", tags=["study-plans"])


def _plan_payload(row) -> Optional[dict]:
    if row is None:
        return None
    return StudyPlanResponse.model_validate(row).model_dump(mode="json", by_alias=True)


def _normalize_patch(plan_data: dict) -> dict:
    """Validate a dailyPlan replacement so every task carries a stable id"""
    patch = dict(plan_data)
    if "dailyPlan" in patch:
        try:
            days = [DailyPlan.model_validate(day) for day in patch["dailyPlan"] or []]
        except (SchemaValidationError, TypeError) as e:
            raise ValidationError(f"Invalid dailyPlan: {e}") from e
        patch["dailyPlan"] = [day.model_dump(mode="json", by_alias=True) for day in merge_days(days)]
    return patch


@router.get("")
def get_current_plan(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"plan": _plan_payload(get_active_study_plan(db, user_id))}


@router.get("/progress")
def get_plan_progress(
    today: Optional[date] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    row = get_active_study_plan(db, user_id)
    if row is None:
        raise NotFoundError("No active study plan")

    plan = PlanData.model_validate(row.plan_data)
    overall = progress.overall_progress(plan.daily_plan, plan.completed_tasks)
    today_entry = progress.today_plan(plan.daily_plan, today)
    return {
        "planId": row.id,
        "overall": {"completed": overall.completed, "total": overall.total, "percent": overall.percent},
        "subjects": progress.subjects_progress(plan.daily_plan, plan.completed_tasks),
        "today": today_entry.model_dump(mode="json", by_alias=True) if today_entry else None,
    }


@router.post("")
def create_plan(
    body: StudyPlanCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    plan_data = PlanData(
        daily_plan=merge_days(body.plan_data.daily_plan),
        tips=body.plan_data.tips,
        completed_tasks={}
    )
    first_day, last_day = plan_date_range(plan_data)

    row = save_study_plan(
        db,
        user_id,
        plan_data.model_dump(mode="json", by_alias=True),
        body.start_date or first_day,
        body.end_date or last_day,
        body.plan_name
    )
    return {"plan": _plan_payload(row)}


@router.put("")
def update_plan(
    body: StudyPlanUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    row = get_study_plan(db, user_id, body.plan_id)
    if row is None:
        raise NotFoundError(f"Study plan {body.plan_id} not found")

    patch = _normalize_patch(body.plan_data) if body.plan_data is not None else {}
    existing = row.plan_data or {}
    merged = {**existing, **patch}
    if body.completed_tasks is not None:
        merged["completedTasks"] = body.completed_tasks
    else:
        merged["completedTasks"] = existing.get("completedTasks") or {}

    # Nothing is written unless the whole merged document is a valid plan
    try:
        document = PlanData.model_validate(merged)
    except SchemaValidationError as e:
        raise ValidationError(f"Invalid planData: {e}") from e

    row = update_study_plan(
        db,
        user_id,
        body.plan_id,
        completed_tasks=document.completed_tasks,
        plan_data=document.model_dump(mode="json", by_alias=True)
    )
    if row is None:
        raise NotFoundError(f"Study plan {body.plan_id} not found")
    return {"plan": _plan_payload(row)}


@router.delete("")
def delete_plan(
    plan_id: Optional[int] = Query(default=None, alias="planId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    if plan_id is None:
        raise ValidationError("Plan ID is required")
    if not delete_study_plan(db, user_id, plan_id):
        raise NotFoundError(f"Study plan {plan_id} not found")
    return {"success": True}
