import asyncio
import json
from datetime import date

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from studyplanner.errors import MalformedPlanError
from studyplanner.scheduler import FALLBACK_TECHNIQUE, PlanGenerator, normalize_plan_response, parse_plan_response
from studyplanner.schemas import ExamInput, StudyPlanRequest

EXAMS = [
    ExamInput(subject="Math", exam_name="Algebra", exam_date=date(2024, 1, 10)),
    ExamInput(subject="Physics", exam_name="Mechanics", exam_date=date(2024, 1, 12)),
    ExamInput(subject="Chemistry", exam_name="Organic", exam_date=date(2024, 1, 14)),
]

PLAN = {
    "dailyPlan": [
        {
            "date": "2024-01-02",
            "day": "Whatever",
            "tasks": [{"text": "Solve 10 factoring problems", "subject": "Math", "timeEstimate": 45}],
            "hours": 2,
        },
        {
            "date": "2024-01-01",
            "tasks": [
                {"id": "model-id", "text": "Read chapter 1", "subject": "Math", "technique": "Summarizing"},
                {"text": "   "},
            ],
            "hours": 1,
        },
        {"date": "2024-01-02", "tasks": [{"text": "Flashcards on kinematics", "subject": "Physics"}], "hours": 3},
        {"date": "not a date", "tasks": [{"text": "Lost"}]},
    ],
    "tips": ["Sleep well", ""],
}


def test_parses_fenced_json_and_sorts_merges_days():
    raw = "Here you go:\n```json\n" + json.dumps(PLAN) + "\n```"

    plan = parse_plan_response(raw)

    assert [day.date for day in plan.daily_plan] == [date(2024, 1, 1), date(2024, 1, 2)]
    assert plan.daily_plan[0].day == "Monday"
    assert [t.text for t in plan.daily_plan[1].tasks] == ["Solve 10 factoring problems", "Flashcards on kinematics"]
    assert plan.daily_plan[1].hours == 3
    assert plan.tips == ["Sleep well"]


def test_tasks_get_fresh_unique_ids():
    plan = parse_plan_response(json.dumps(PLAN))

    ids = [task.id for day in plan.daily_plan for task in day.tasks]
    assert len(ids) == len(set(ids)) == 3
    assert "model-id" not in ids
    # Blank task text is dropped
    assert len(plan.daily_plan[0].tasks) == 1


@pytest.mark.parametrize("raw", ["", "not json at all", "[1, 2, 3]", '{"dailyPlan": []}', '{"tips": []}'])
def test_unusable_output_raises(raw):
    with pytest.raises(MalformedPlanError):
        parse_plan_response(raw)


def test_non_json_falls_back_to_single_day():
    plan = normalize_plan_response("Sorry, I cannot help with that.", EXAMS, 3, date(2024, 1, 1))

    assert len(plan.daily_plan) == 1
    day = plan.daily_plan[0]
    assert day.date == date(2024, 1, 1)
    assert day.hours == 3
    assert [t.exam_name for t in day.tasks] == ["Algebra", "Mechanics", "Organic"]
    assert all(t.time_estimate == 60 for t in day.tasks)
    assert all(t.technique == FALLBACK_TECHNIQUE for t in day.tasks)
    assert plan.tips == []


def test_fallback_rounds_minutes():
    plan = normalize_plan_response("nope", EXAMS, 2.5, date(2024, 1, 1))
    assert [t.time_estimate for t in plan.daily_plan[0].tasks] == [50, 50, 50]


def test_malformed_without_exams_raises():
    with pytest.raises(MalformedPlanError):
        normalize_plan_response("nope", [], 2, date(2024, 1, 1))


def test_generator_runs_chain_against_model():
    llm = FakeListChatModel(responses=[json.dumps(PLAN)])
    request = StudyPlanRequest(exams=EXAMS, study_hours_per_day=2, start_date=date(2024, 1, 1))

    plan = asyncio.run(PlanGenerator(llm, timeout=5).agenerate(request))

    assert len(plan.daily_plan) == 2
