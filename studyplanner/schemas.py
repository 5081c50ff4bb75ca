from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional
from datetime import date, datetime
from uuid import uuid4

# DailyPlan has a field called "date"
CalendarDate = date


def new_task_id() -> str:
    return uuid4().hex


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while keeping snake_case attributes"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---------------------------------------------------------------------------
# Study plan document (stored in study_plans.plan_data)
# ---------------------------------------------------------------------------

class Task(CamelModel):
    """Schema for a single study task inside a day"""
    id: str = Field(default_factory=new_task_id)
    text: str
    exam_name: str = ""
    subject: str = ""
    technique: str = ""
    time_estimate: int = Field(default=0, ge=0, description="Minutes")

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("task text must not be empty")
        return value

    @field_validator("time_estimate", mode="before")
    @classmethod
    def _coerce_minutes(cls, value: Any) -> int:
        if value in (None, ""):
            return 0
        return max(0, int(round(float(value))))


class DailyPlan(CamelModel):
    """Schema for a single day's study plan"""
    date: CalendarDate
    day: str = ""
    tasks: List[Task] = Field(default_factory=list)
    hours: float = 0


class GeneratedPlan(CamelModel):
    """Schema for a complete plan as produced by the generator"""
    daily_plan: List[DailyPlan] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)


class PlanData(GeneratedPlan):
    """Persisted plan document: generated plan plus the completion map"""
    completed_tasks: Dict[str, bool] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Subjects / exams / materials
# ---------------------------------------------------------------------------

class SubjectCreate(CamelModel):
    name: str = Field(min_length=1)
    color: str = "#6366f1"


class SubjectUpdate(CamelModel):
    name: Optional[str] = None
    color: Optional[str] = None


class SubjectResponse(SubjectCreate):
    id: int
    created_at: Optional[datetime] = None


class ExamCreate(CamelModel):
    exam_name: str = Field(min_length=1)
    exam_date: date
    description: Optional[str] = None


class ExamUpdate(CamelModel):
    exam_name: Optional[str] = None
    exam_date: Optional[date] = None
    description: Optional[str] = None


class ExamResponse(ExamCreate):
    id: int
    subject_id: int
    subject_name: Optional[str] = None


class StudyMaterialResponse(CamelModel):
    id: int
    subject_id: Optional[int] = None
    file_name: str
    file_path: str
    file_type: str
    uploaded_at: Optional[datetime] = None


class GeneratedContentResponse(CamelModel):
    id: int
    material_id: int
    content_type: Literal["summary", "flashcard", "quiz"]
    content: Any
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# AI endpoints
# ---------------------------------------------------------------------------

DetailLevel = Literal["brief", "standard", "detailed"]


class ExtractTextRequest(CamelModel):
    file_path: str = ""


class TextRequest(CamelModel):
    text: str = ""
    material_id: Optional[int] = None


class SummaryRequest(TextRequest):
    detail_level: str = "standard"


class Flashcard(BaseModel):
    question: str
    answer: str
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class QuizQuestion(CamelModel):
    question: str
    options: List[str]
    correct_answer: int = Field(ge=0, le=3)
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def _four_options(cls, value: List[str]) -> List[str]:
        if len(value) != 4:
            raise ValueError("quiz questions need exactly 4 options")
        return value


class ExamInput(CamelModel):
    """Exam as sent to the plan generator"""
    subject: str
    exam_name: str
    exam_date: date
    syllabus: Optional[str] = None
    subject_id: Optional[int] = None


class MaterialExcerpt(CamelModel):
    file_name: str
    content: str


class StudyPlanRequest(CamelModel):
    """Schema for study plan generation request"""
    exams: List[ExamInput] = Field(default_factory=list)
    study_hours_per_day: float = Field(gt=0, le=24)
    start_date: date = Field(default_factory=date.today)
    additional_notes: Optional[str] = None
    material_content: Optional[Dict[str, List[MaterialExcerpt]]] = None


# ---------------------------------------------------------------------------
# Study plan persistence endpoints
# ---------------------------------------------------------------------------

class StudyPlanCreate(CamelModel):
    plan_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    plan_data: PlanData


class StudyPlanUpdate(CamelModel):
    plan_id: int
    completed_tasks: Optional[Dict[str, bool]] = None
    plan_data: Optional[Dict[str, Any]] = None


class StudyPlanResponse(CamelModel):
    id: int
    plan_name: str
    start_date: date
    end_date: Optional[date] = None
    plan_data: PlanData
    is_active: bool
    created_at: Optional[datetime] = None
