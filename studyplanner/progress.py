"""Completion statistics derived from a plan and its completion map.

Everything here is a pure function of ``(daily_plan, completed_tasks)`` so
it can be recomputed on every render or request.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from studyplanner.schemas import DailyPlan


@dataclass
class Progress:
    completed: int
    total: int

    @property
    def percent(self) -> int:
        return percentage(self.completed, self.total)


def percentage(completed: int, total: int) -> int:
    """0-100 integer, 0 when there is nothing to do"""
    if total == 0:
        return 0
    return round(completed / total * 100)


def _count(days: List[DailyPlan], completed_tasks: Dict[str, bool], subject: Optional[str] = None) -> Progress:
    completed = total = 0
    for day in days:
        for task in day.tasks:
            if subject is not None and task.subject != subject:
                continue
            total += 1
            if completed_tasks.get(task.id) is True:
                completed += 1
    return Progress(completed, total)


def overall_progress(daily_plan: List[DailyPlan], completed_tasks: Dict[str, bool]) -> Progress:
    return _count(daily_plan, completed_tasks)


def subject_progress(daily_plan: List[DailyPlan], completed_tasks: Dict[str, bool], subject: str) -> int:
    """Percentage of the subject's tasks marked done"""
    return _count(daily_plan, completed_tasks, subject).percent


def subjects_progress(daily_plan: List[DailyPlan], completed_tasks: Dict[str, bool]) -> Dict[str, int]:
    """Percentage per subject, in order of first appearance"""
    subjects = []
    for day in daily_plan:
        for task in day.tasks:
            if task.subject not in subjects:
                subjects.append(task.subject)
    return {subject: subject_progress(daily_plan, completed_tasks, subject) for subject in subjects}


def day_progress(day: DailyPlan, completed_tasks: Dict[str, bool]) -> Progress:
    return _count([day], completed_tasks)


def today_plan(daily_plan: List[DailyPlan], today: date = None) -> Optional[DailyPlan]:
    """Today's entry, or the first day of the plan when today is not in it"""
    if not daily_plan:
        return None
    today = today or date.today()
    for day in daily_plan:
        if day.date == today:
            return day
    return daily_plan[0]
