from sqlalchemy.orm import Session
from studyplanner.models import StudyMaterial
from typing import Iterable, List, Optional

def create_material(
    db: Session,
    user_id: str,
    file_name: str,
    file_path: str,
    file_type: str,
    subject_id: Optional[int] = None
) -> StudyMaterial:
    """Record metadata for an uploaded file"""
    db_material = StudyMaterial(
        user_id=user_id,
        subject_id=subject_id,
        file_name=file_name,
        file_path=file_path,
        file_type=file_type
    )
    db.add(db_material)
    db.commit()
    db.refresh(db_material)
    return db_material

def get_material(db: Session, user_id: str, material_id: int) -> Optional[StudyMaterial]:
    return db.query(StudyMaterial).filter(
        StudyMaterial.id == material_id,
        StudyMaterial.user_id == user_id
    ).first()

def get_material_by_path(db: Session, user_id: str, file_path: str) -> Optional[StudyMaterial]:
    return db.query(StudyMaterial).filter(
        StudyMaterial.file_path == file_path,
        StudyMaterial.user_id == user_id
    ).first()

def get_materials(db: Session, user_id: str) -> List[StudyMaterial]:
    """Get all materials, newest first"""
    return db.query(StudyMaterial).filter(
        StudyMaterial.user_id == user_id
    ).order_by(StudyMaterial.uploaded_at.desc(), StudyMaterial.id.desc()).all()

def get_materials_for_subjects(db: Session, user_id: str, subject_ids: Iterable[int]) -> List[StudyMaterial]:
    """Get materials assigned to any of the given subjects, oldest first"""
    subject_ids = list(subject_ids)
    if not subject_ids:
        return []
    return db.query(StudyMaterial).filter(
        StudyMaterial.user_id == user_id,
        StudyMaterial.subject_id.in_(subject_ids)
    ).order_by(StudyMaterial.uploaded_at.asc(), StudyMaterial.id.asc()).all()

def delete_material(db: Session, user_id: str, material_id: int) -> bool:
    db_material = get_material(db, user_id, material_id)
    if not db_material:
        return False
    db.delete(db_material)
    db.commit()
    return True
