import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyplanner.api.deps import get_current_user_id, get_storage
from studyplanner.config import settings
from studyplanner.crud import (
    create_material,
    delete_material,
    get_generated_content,
    get_material,
    get_materials,
    get_subject
)
from studyplanner.database import get_db
from studyplanner.errors import NotFoundError, PersistenceError, StudyPlannerError, ValidationError
from studyplanner.extraction import SUPPORTED_EXTENSIONS
from studyplanner.schemas import GeneratedContentResponse, StudyMaterialResponse
from studyplanner.storage import LocalObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/materials", tags=["materials"])


def _material_payload(material) -> dict:
    return StudyMaterialResponse.model_validate(material).model_dump(mode="json", by_alias=True)


@router.get("")
def list_materials(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"materials": [_material_payload(m) for m in get_materials(db, user_id)]}


@router.post("")
async def upload_material(
    file: UploadFile = File(...),
    subject_id: Optional[int] = Form(default=None, alias="subjectId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    file_name = file.filename or "upload"
    file_ext = Path(file_name).suffix.lower()
    if file_ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type '{file_ext}'. Use PDF, DOCX, PPTX or TXT.")

    if subject_id is not None and get_subject(db, user_id, subject_id) is None:
        raise NotFoundError(f"Subject {subject_id} not found")

    data = await file.read()
    if not data:
        raise ValidationError(f"{file_name} is empty")
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(f"{file_name} exceeds {settings.max_upload_bytes // (1024 * 1024)}MB limit")

    file_path = storage.save(user_id, file_name, data)
    try:
        material = create_material(db, user_id, file_name, file_path, file_ext.lstrip("."), subject_id)
    except SQLAlchemyError as e:
        # Metadata insert failed, drop the orphaned object again
        db.rollback()
        try:
            storage.delete(file_path)
        except StudyPlannerError:
            logger.warning("Could not remove orphaned object %s", file_path)
        raise PersistenceError(f"Failed to record material {file_name}: {e}", "Failed to upload file") from e

    return {"material": _material_payload(material)}


@router.delete("/{material_id}")
def remove_material(
    material_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    material = get_material(db, user_id, material_id)
    if material is None:
        raise NotFoundError(f"Material {material_id} not found")

    try:
        storage.delete(material.file_path)
    except StudyPlannerError as e:
        logger.warning("Could not delete object %s: %s", material.file_path, e.message)

    delete_material(db, user_id, material_id)
    return {"success": True}


@router.get("/{material_id}/generated-content")
def list_generated_content(
    material_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if get_material(db, user_id, material_id) is None:
        raise NotFoundError(f"Material {material_id} not found")
    return {
        "content": [
            GeneratedContentResponse.model_validate(row).model_dump(mode="json", by_alias=True)
            for row in get_generated_content(db, user_id, material_id)
        ]
    }
