import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.utils.json import parse_json_markdown
from pydantic import ValidationError as SchemaValidationError

from studyplanner.config import settings
from studyplanner.errors import MalformedPlanError, UpstreamServiceError, ValidationError
from studyplanner.llm import get_llm
from studyplanner.schemas import DailyPlan, ExamInput, GeneratedPlan, MaterialExcerpt, StudyPlanRequest, Task

logger = logging.getLogger(__name__)

STUDY_TECHNIQUES = [
    "Feynman Technique",
    "Active Recall",
    "Spaced Repetition",
    "Practice Problems",
    "Pomodoro",
    "Mind Mapping",
    "Summarizing",
]

FALLBACK_TECHNIQUE = "Active Recall"


def get_scheduler():
    """Factory function to return a plan generator backed by the configured LLM"""
    return PlanGenerator(get_llm(json_mode=True, temperature=0.7, max_tokens=3000))


# ---------------------------------------------------------------------------
# Date window
# ---------------------------------------------------------------------------

@dataclass
class StudyWindow:
    start_date: date
    end_date: date
    total_days: int
    days_until_exam: int

    @property
    def urgent(self) -> bool:
        """Last exam is today or tomorrow"""
        return self.days_until_exam <= 1


def compute_study_window(start_date: date, exam_dates: List[date]) -> StudyWindow:
    """
    Work out the planning window for a set of exams.

    The plan ends the day before the last exam (kept free as a rest day)
    unless the last exam is two days away or closer.
    """
    if not exam_dates:
        raise ValidationError("At least one exam is required")

    stale = [d for d in exam_dates if d < start_date]
    if stale:
        raise ValidationError(
            f"Exam dates must not be before the start date {start_date.isoformat()}: "
            + ", ".join(d.isoformat() for d in sorted(stale))
        )

    last_exam = max(exam_dates)
    days_until_exam = (last_exam - start_date).days

    end_date = last_exam
    if days_until_exam > 2:
        end_date = last_exam - timedelta(days=1)

    total_days = max(1, (end_date - start_date).days + 1)
    return StudyWindow(start_date, end_date, total_days, days_until_exam)


def prioritize_exams(exams: List[ExamInput]) -> List[ExamInput]:
    """Nearest exam first; exams on the same day keep their order"""
    return sorted(exams, key=lambda exam: exam.exam_date)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are an expert study planning assistant. Create detailed, realistic study plans with SPECIFIC and ACTIONABLE tasks.

Use the SEQUENTIAL FOCUS strategy: prioritize the nearest exam first, then shift focus to the next exam after it passes.

Each task must include the exam it is for, a recommended study technique AND a time estimate in minutes.

Return ONLY a JSON object with this structure:
{{"dailyPlan": [{{"date": "2024-01-15", "day": "Monday", "tasks": [{{"text": "Complete 10 problems on quadratic equations", "examName": "Algebra Mid", "subject": "Algebra", "technique": "Practice Problems", "timeEstimate": 30}}], "hours": 2}}], "tips": ["Tip 1", "Tip 2"]}}

Available techniques: Feynman Technique (explain concepts simply), Active Recall (test yourself), Spaced Repetition (review at intervals), Practice Problems (solve exercises), Pomodoro (25min focus blocks), Mind Mapping (visual connections), Summarizing (condense notes)."""


def _format_hours(hours: float) -> str:
    return str(int(hours)) if float(hours).is_integer() else f"{hours:g}"


def _format_exams(exams: List[ExamInput]) -> str:
    """Numbered exam list with per-exam topics"""
    items = []
    for index, exam in enumerate(exams, start=1):
        line = f"{index}. {exam.subject} - {exam.exam_name} on {exam.exam_date.isoformat()}"
        if exam.syllabus and exam.syllabus.strip():
            line += f"\n   Topics/Syllabus: {exam.syllabus.strip()}"
        items.append(line)
    return "\n\n".join(items)


def _format_materials(material_content: Optional[Dict[str, List[MaterialExcerpt]]]) -> str:
    """Material excerpts grouped by subject, capped per subject and per excerpt"""
    if not material_content:
        return ""

    sections = []
    for subject, materials in material_content.items():
        if not materials:
            continue
        section = f"--- {subject} Materials ---\n"
        for material in materials[:settings.materials_per_subject]:
            content = material.content[:settings.material_excerpt_chars]
            section += f"File: {material.file_name}\nContent Preview:\n{content}\n\n"
        sections.append(section)

    if not sections:
        return ""
    return "STUDY MATERIALS CONTENT (use these to create specific, topic-based tasks):\n\n" + "\n".join(sections)


def build_plan_request(
    exams: List[ExamInput],
    study_hours_per_day: float,
    window: StudyWindow,
    additional_notes: Optional[str] = None,
    material_content: Optional[Dict[str, List[MaterialExcerpt]]] = None
) -> str:
    """Build the user instruction for the plan generator; exams must already be sorted"""
    hours = _format_hours(study_hours_per_day)
    minutes = int(round(study_hours_per_day * 60))
    plural = "" if window.total_days == 1 else "s"
    materials = _format_materials(material_content)

    context = f"""Create a personalized study plan for these exams using SEQUENTIAL FOCUS strategy:

{_format_exams(exams)}
"""
    if materials:
        context += f"\n{materials}"

    context += f"""
Study Period: {window.start_date.isoformat()} to {window.end_date.isoformat()} ({window.total_days} day{plural})
Available study hours per day: {hours}"""

    if additional_notes and additional_notes.strip():
        context += f"\n\nStudent's Notes/Preferences: {additional_notes.strip()}"

    if window.urgent:
        context += "\n\nURGENT: Exam is TODAY or TOMORROW! Create an intensive last-minute review plan."

    context += """

SEQUENTIAL FOCUS STRATEGY:
- Focus heavily on exam #1 (nearest) until 1-2 days before it
- After exam #1, shift focus to exam #2
- Continue this pattern for all exams
- Increase study intensity as each exam approaches
- Assign appropriate study techniques based on the topic and task type"""

    if window.urgent:
        context += "\n- For same-day/next-day exams: Focus on quick review, key concepts, and practice problems"

    context += f"""

TASK REQUIREMENTS:
- Each task MUST include which exam it is for (examName and subject)
- Each task MUST include a study technique from: {", ".join(STUDY_TECHNIQUES)}
- Each task MUST include a timeEstimate in minutes (e.g., 15, 30, 45, 60)
- Time estimates should sum to approximately {hours} hours ({minutes} minutes) per day
- Be SPECIFIC and ACTIONABLE (e.g., "Solve 15 factorization problems" not just "Study algebra")
- Include measurable outcomes (numbers, specific topics)
- Distribute {hours} hours realistically per day (2-4 tasks)
- Ramp up intensity 3-4 days before each exam"""

    if additional_notes and additional_notes.strip():
        context += "\n- Consider the student's preferences and constraints mentioned above"
    if materials:
        context += (
            "\n- IMPORTANT: Use the STUDY MATERIALS CONTENT above to create highly specific tasks based on "
            "actual topics, chapters, and concepts from the student's notes."
        )

    context += f"""

IMPORTANT: You MUST return a dailyPlan array with at least {window.total_days} day{plural}. Each day MUST have tasks.

Return ONLY the JSON object with the dailyPlan structure covering all {window.total_days} day{plural}."""

    return context


# ---------------------------------------------------------------------------
# Response normalization
# ---------------------------------------------------------------------------

def _clean_day(raw_day) -> Optional[DailyPlan]:
    """Validate one day; bad tasks are dropped, a bad date drops the day"""
    if not isinstance(raw_day, dict):
        return None

    tasks = []
    for raw_task in raw_day.get("tasks") or []:
        if not isinstance(raw_task, dict):
            continue
        # Ids are always ours, never the model's
        raw_task = {key: value for key, value in raw_task.items() if key != "id"}
        try:
            tasks.append(Task.model_validate(raw_task))
        except SchemaValidationError:
            logger.debug("Dropping malformed task %r", raw_task)

    try:
        return DailyPlan.model_validate({
            "date": raw_day.get("date"),
            "tasks": tasks,
            "hours": raw_day.get("hours") or 0,
        })
    except SchemaValidationError:
        logger.debug("Dropping malformed day %r", raw_day)
        return None


def merge_days(days: List[DailyPlan]) -> List[DailyPlan]:
    """Merge duplicate dates (tasks appended in order) and sort ascending"""
    by_date: Dict[date, DailyPlan] = {}
    for day in days:
        if day.date in by_date:
            existing = by_date[day.date]
            existing.tasks.extend(day.tasks)
            existing.hours = max(existing.hours, day.hours)
        else:
            by_date[day.date] = day

    merged = sorted(by_date.values(), key=lambda d: d.date)
    for day in merged:
        day.day = day.date.strftime("%A")
    return merged


def parse_plan_response(raw: str) -> GeneratedPlan:
    """
    Parse raw generator output into a plan.

    Markdown code fences are tolerated. Raises MalformedPlanError when the
    text is not a JSON object or holds no usable dailyPlan entries.
    """
    try:
        data = parse_json_markdown(raw or "")
    except (json.JSONDecodeError, OutputParserException, ValueError) as e:
        raise MalformedPlanError(f"Failed to parse study plan from AI response: {e}") from e

    if not isinstance(data, dict):
        raise MalformedPlanError("Study plan response is not a JSON object")

    raw_days = data.get("dailyPlan") or data.get("daily_plan")
    if not isinstance(raw_days, list) or not raw_days:
        raise MalformedPlanError("Study plan response has no dailyPlan entries")

    days = [day for day in (_clean_day(raw_day) for raw_day in raw_days) if day is not None]
    days = [day for day in days if day.tasks]
    if not days:
        raise MalformedPlanError("Study plan response has no valid dailyPlan entries")

    tips = [str(tip).strip() for tip in (data.get("tips") or []) if str(tip).strip()]
    return GeneratedPlan(daily_plan=merge_days(days), tips=tips)


def fallback_plan(exams: List[ExamInput], study_hours_per_day: float, start_date: date) -> GeneratedPlan:
    """Single-day Active Recall plan with one task per exam"""
    if not exams:
        raise ValidationError("At least one exam is required")

    minutes = round(study_hours_per_day * 60 / len(exams))
    tasks = [
        Task(
            text=f"Review key concepts and practice problems for {exam.exam_name}",
            exam_name=exam.exam_name,
            subject=exam.subject,
            technique=FALLBACK_TECHNIQUE,
            time_estimate=minutes,
        )
        for exam in exams
    ]
    day = DailyPlan(date=start_date, day=start_date.strftime("%A"), tasks=tasks, hours=study_hours_per_day)
    return GeneratedPlan(daily_plan=[day], tips=[])


def normalize_plan_response(
    raw: str,
    exams: List[ExamInput],
    study_hours_per_day: float,
    start_date: date
) -> GeneratedPlan:
    """Parse generator output, falling back to a minimal plan when it is unusable"""
    try:
        return parse_plan_response(raw)
    except MalformedPlanError as e:
        if not exams:
            raise
        logger.warning("Using fallback study plan: %s", e.message)
        return fallback_plan(exams, study_hours_per_day, start_date)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class PlanGenerator:
    """AI-powered exam study plan generation"""

    def __init__(self, llm: BaseChatModel, timeout: Optional[float] = None):
        self.llm = llm
        self.timeout = timeout or settings.llm_timeout_seconds
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", SYSTEM_PROMPT),
            ("human", "{request}")
        ])

    async def agenerate(self, request: StudyPlanRequest) -> GeneratedPlan:
        """
        Generate a plan for the requested exams.

        Args:
            request: exams, daily hours, start date, notes and material excerpts

        Returns:
            GeneratedPlan sorted by date; the fallback plan when the model
            output cannot be used
        """
        exams = prioritize_exams(request.exams)
        window = compute_study_window(request.start_date, [exam.exam_date for exam in exams])

        plan_request = build_plan_request(
            exams,
            request.study_hours_per_day,
            window,
            request.additional_notes,
            request.material_content
        )
        logger.debug("Generated prompt for %s:\n%s", self.__class__.__name__, plan_request)

        chain = self.prompt | self.llm | StrOutputParser()

        try:
            raw = await asyncio.wait_for(chain.ainvoke({"request": plan_request}), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamServiceError(
                f"Study plan generation timed out after {self.timeout}s",
                "Failed to generate study plan"
            ) from e
        except Exception as e:
            logger.exception("Study plan generation failed")
            raise UpstreamServiceError(f"Study plan generation failed: {e}", "Failed to generate study plan") from e

        plan = normalize_plan_response(raw, exams, request.study_hours_per_day, request.start_date)
        logger.info(
            "Generated study plan: %d day(s), %d task(s) for %d exam(s)",
            len(plan.daily_plan),
            sum(len(day.tasks) for day in plan.daily_plan),
            len(exams)
        )
        return plan

    def generate(self, request: StudyPlanRequest) -> GeneratedPlan:
        """Blocking wrapper for the CLI and the Streamlit app"""
        return asyncio.run(self.agenerate(request))
