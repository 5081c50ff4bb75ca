import asyncio
import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from studyplanner.crud import get_materials_for_subjects
from studyplanner.errors import ValidationError
from studyplanner.extraction import gather_material_excerpts, select_extraction_jobs
from studyplanner.scheduler import PlanGenerator, prioritize_exams
from studyplanner.schemas import GeneratedPlan, MaterialExcerpt, StudyPlanRequest

logger = logging.getLogger(__name__)


async def collect_material_content(db: Session, storage, user_id: str, request: StudyPlanRequest) -> Dict[str, List[MaterialExcerpt]]:
    """Excerpts from the user's materials for every subject the exams belong to"""
    subject_names = {}
    for exam in prioritize_exams(request.exams):
        if exam.subject_id is not None and exam.subject_id not in subject_names:
            subject_names[exam.subject_id] = exam.subject

    # Session queries block, so they run on a worker thread
    materials = await asyncio.to_thread(get_materials_for_subjects, db, user_id, list(subject_names))

    materials_by_subject = {name: [] for name in subject_names.values()}
    for material in materials:
        materials_by_subject[subject_names[material.subject_id]].append(material)

    jobs = select_extraction_jobs(materials_by_subject)
    if not jobs:
        return {}

    logger.info("Extracting %d material(s) for study plan of user %s", len(jobs), user_id)
    return await gather_material_excerpts(jobs, storage)


async def generate_study_plan(
    db: Session,
    storage,
    generator: PlanGenerator,
    user_id: str,
    request: StudyPlanRequest
) -> GeneratedPlan:
    """
    Run the whole generation pipeline for one request.

    Material excerpts are pulled from storage only when the caller did not
    send any.
    """
    if not request.exams:
        raise ValidationError("At least one exam is required")

    if request.material_content is None:
        material_content = await collect_material_content(db, storage, user_id, request)
        request = request.model_copy(update={"material_content": material_content})

    return await generator.agenerate(request)
