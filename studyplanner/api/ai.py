import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studyplanner import content_generator
from studyplanner.api.deps import get_current_user_id, get_llm_factory, get_plan_generator, get_storage
from studyplanner.crud import get_material, get_material_by_path, save_generated_content
from studyplanner.database import get_db
from studyplanner.errors import NotFoundError, StudyPlannerError, UpstreamServiceError, ValidationError
from studyplanner.extraction import extract_text
from studyplanner.llm import LLMFactory
from studyplanner.planning import generate_study_plan
from studyplanner.scheduler import PlanGenerator
from studyplanner.schemas import ExtractTextRequest, StudyPlanRequest, SummaryRequest, TextRequest
from studyplanner.storage import LocalObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


def _check_material(db: Session, user_id: str, material_id: Optional[int]) -> None:
    if material_id is not None and get_material(db, user_id, material_id) is None:
        raise NotFoundError(f"Material {material_id} not found")


def _store(db: Session, user_id: str, material_id: Optional[int], content_type: str, content) -> None:
    if material_id is not None:
        save_generated_content(db, user_id, material_id, content_type, content)


@router.post("/extract-text")
def extract_text_endpoint(
    body: ExtractTextRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    if not body.file_path:
        raise ValidationError("File path is required")

    material = get_material_by_path(db, user_id, body.file_path)
    if material is None:
        raise NotFoundError(f"File not found: {body.file_path}")

    data = storage.download(material.file_path)
    try:
        text = extract_text(material.file_name, data)
    except StudyPlannerError:
        raise
    except Exception as e:
        logger.exception("Text extraction failed for %s", material.file_path)
        raise UpstreamServiceError(f"Text extraction failed: {e}", "Failed to extract text") from e

    return {"text": text}


@router.post("/generate-summary")
def generate_summary_endpoint(
    body: SummaryRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    _check_material(db, user_id, body.material_id)
    summary = content_generator.generate_summary(body.text, body.detail_level, llm_factory=llm_factory)
    _store(db, user_id, body.material_id, "summary", {"summary": summary, "detailLevel": body.detail_level})
    return {"summary": summary, "detailLevel": body.detail_level}


@router.post("/generate-flashcards")
def generate_flashcards_endpoint(
    body: TextRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    _check_material(db, user_id, body.material_id)
    cards = [card.model_dump() for card in content_generator.generate_flashcards(body.text, llm_factory=llm_factory)]
    _store(db, user_id, body.material_id, "flashcard", cards)
    return {"flashcards": cards}


@router.post("/generate-quiz")
def generate_quiz_endpoint(
    body: TextRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    _check_material(db, user_id, body.material_id)
    quiz = [
        question.model_dump(by_alias=True)
        for question in content_generator.generate_quiz(body.text, llm_factory=llm_factory)
    ]
    _store(db, user_id, body.material_id, "quiz", quiz)
    return {"quiz": quiz}


@router.post("/extract-syllabus")
def extract_syllabus_endpoint(
    body: TextRequest,
    user_id: str = Depends(get_current_user_id),
    llm_factory: LLMFactory = Depends(get_llm_factory),
):
    return {"syllabus": content_generator.extract_syllabus(body.text, llm_factory=llm_factory)}


@router.post("/generate-study-plan")
async def generate_study_plan_endpoint(
    body: StudyPlanRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    generator: PlanGenerator = Depends(get_plan_generator),
):
    plan = await generate_study_plan(db, storage, generator, user_id, body)
    return {"plan": plan.model_dump(mode="json", by_alias=True)}
