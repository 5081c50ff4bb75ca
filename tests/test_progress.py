from datetime import date

from studyplanner.progress import (
    day_progress,
    overall_progress,
    percentage,
    subject_progress,
    subjects_progress,
    today_plan,
)
from studyplanner.schemas import DailyPlan, Task


def make_plan():
    return [
        DailyPlan(date=date(2024, 1, 1), tasks=[
            Task(id="m1", text="Algebra drills", subject="Math"),
            Task(id="p1", text="Kinematics notes", subject="Physics"),
        ]),
        DailyPlan(date=date(2024, 1, 2), tasks=[
            Task(id="m2", text="Geometry proofs", subject="Math"),
            Task(id="p2", text="Forces problems", subject="Physics"),
        ]),
    ]


def test_percentage_handles_empty_total():
    assert percentage(0, 0) == 0
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67


def test_overall_and_subject_progress():
    daily_plan = make_plan()
    completed = {"m1": True, "p2": True, "m2": False, "ghost": True}

    overall = overall_progress(daily_plan, completed)
    assert (overall.completed, overall.total, overall.percent) == (2, 4, 50)

    assert subject_progress(daily_plan, completed, "Math") == 50
    assert subject_progress(daily_plan, completed, "Physics") == 50
    assert subject_progress(daily_plan, completed, "Biology") == 0
    assert list(subjects_progress(daily_plan, completed).items()) == [("Math", 50), ("Physics", 50)]


def test_day_progress():
    day = make_plan()[0]
    result = day_progress(day, {"m1": True})
    assert (result.completed, result.total) == (1, 2)


def test_today_plan_prefers_today_and_falls_back_to_first_day():
    daily_plan = make_plan()
    assert today_plan(daily_plan, date(2024, 1, 2)).date == date(2024, 1, 2)
    assert today_plan(daily_plan, date(2030, 1, 1)).date == date(2024, 1, 1)
    assert today_plan([], date(2024, 1, 1)) is None
