import logging
import math
from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyplanner.crud import (
    delete_study_plan,
    get_active_study_plan,
    save_study_plan,
    update_study_plan
)
from studyplanner.errors import NotFoundError, PersistenceError
from studyplanner.schemas import DailyPlan, GeneratedPlan, PlanData, Task

logger = logging.getLogger(__name__)


def plan_date_range(plan: GeneratedPlan):
    dates = sorted(day.date for day in plan.daily_plan)
    if not dates:
        today = date.today()
        return today, today
    return dates[0], dates[-1]


class PlanStore:
    """
    Local view of a user's current study plan plus its completion map.

    Changes show up in the local snapshot immediately and are then written
    through to the database. A failed write puts the snapshot back the way
    it was and raises PersistenceError; nothing is retried.
    """

    def __init__(self, session_factory: Callable[[], Session], user_id: str):
        self.SessionLocal = session_factory
        self.user_id = user_id
        self.plan_id: Optional[int] = None
        self.plan_name: Optional[str] = None
        self.plan: Optional[PlanData] = None

    @property
    def completed_tasks(self):
        return self.plan.completed_tasks if self.plan else {}

    def _persist(self, action: str, fn):
        try:
            with self.SessionLocal() as db:
                return fn(db)
        except SQLAlchemyError as e:
            logger.error("Failed to %s for user %s: %s", action, self.user_id, e)
            raise PersistenceError(f"Failed to {action}: {e}") from e

    def _update(self, action: str, completed_tasks: dict = None, plan_data: dict = None):
        plan_id = self.plan_id
        row = self._persist(action, lambda db: update_study_plan(
            db, self.user_id, plan_id, completed_tasks=completed_tasks, plan_data=plan_data
        ))
        if row is None:
            raise PersistenceError(f"Failed to {action}: plan {plan_id} no longer exists")
        return row

    def _require_plan(self) -> PlanData:
        if self.plan is None or self.plan_id is None:
            raise NotFoundError("No study plan loaded")
        return self.plan

    def _set_from_row(self, row):
        if row is None:
            self.plan_id = None
            self.plan_name = None
            self.plan = None
        else:
            self.plan_id = row.id
            self.plan_name = row.plan_name
            self.plan = PlanData.model_validate(row.plan_data or {})

    def load(self) -> Optional[PlanData]:
        """Read the active plan from the database"""
        row = self._persist("load study plan", lambda db: get_active_study_plan(db, self.user_id))
        self._set_from_row(row)
        return self.plan

    def create_plan(self, plan: GeneratedPlan, plan_name: str = None) -> PlanData:
        """Persist a fresh plan with an empty completion map; it becomes the active one"""
        plan_data = PlanData(daily_plan=plan.daily_plan, tips=plan.tips, completed_tasks={})
        start_date, end_date = plan_date_range(plan_data)

        row = self._persist("save study plan", lambda db: save_study_plan(
            db,
            self.user_id,
            plan_data.model_dump(mode="json", by_alias=True),
            start_date,
            end_date,
            plan_name
        ))
        self._set_from_row(row)
        logger.info("Created study plan %s for user %s", self.plan_id, self.user_id)
        return self.plan

    def regenerate_plan(self, plan: GeneratedPlan, plan_name: str = None) -> PlanData:
        """Replace the current plan; all completion state is discarded"""
        return self.create_plan(plan, plan_name or self.plan_name)

    def find_task(self, task_id: str) -> Optional[Task]:
        if self.plan is None:
            return None
        for day in self.plan.daily_plan:
            for task in day.tasks:
                if task.id == task_id:
                    return task
        return None

    def toggle_task(self, task_id: str, completed: bool) -> None:
        """Mark a task done or not done; reverted locally if the write fails"""
        plan = self._require_plan()
        if self.find_task(task_id) is None:
            raise NotFoundError(f"Task {task_id} not found in the current plan")

        had_value = task_id in plan.completed_tasks
        previous = plan.completed_tasks.get(task_id)
        plan.completed_tasks[task_id] = completed

        snapshot = dict(plan.completed_tasks)
        try:
            self._update("update task completion", completed_tasks=snapshot)
        except PersistenceError:
            if had_value:
                plan.completed_tasks[task_id] = previous
            else:
                plan.completed_tasks.pop(task_id, None)
            raise

    def add_task(self, day_date: date, task: Task) -> Task:
        """
        Add a task to a day.

        Existing days get the task appended at the end; a missing day is
        inserted at its sorted position.
        """
        plan = self._require_plan()
        previous_days = [day.model_copy(deep=True) for day in plan.daily_plan]

        for day in plan.daily_plan:
            if day.date == day_date:
                day.tasks.append(task)
                break
        else:
            new_day = DailyPlan(
                date=day_date,
                day=day_date.strftime("%A"),
                tasks=[task],
                hours=math.ceil(task.time_estimate / 60)
            )
            plan.daily_plan.append(new_day)
            plan.daily_plan.sort(key=lambda d: d.date)

        daily_plan = [day.model_dump(mode="json", by_alias=True) for day in plan.daily_plan]
        try:
            self._update("add task", plan_data={"dailyPlan": daily_plan})
        except PersistenceError:
            plan.daily_plan = previous_days
            raise
        return task

    def delete_plan(self) -> None:
        """Delete the persisted plan and clear local state"""
        self._require_plan()
        plan_id = self.plan_id
        self._persist("delete study plan", lambda db: delete_study_plan(db, self.user_id, plan_id))
        self._set_from_row(None)
        logger.info("Deleted study plan %s for user %s", plan_id, self.user_id)
