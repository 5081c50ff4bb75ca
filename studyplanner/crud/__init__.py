from studyplanner.crud.subject import (
    create_subject,
    get_subject,
    get_subjects,
    update_subject,
    delete_subject
)
from studyplanner.crud.exam import create_exam, get_exam, get_exams, update_exam, delete_exam
from studyplanner.crud.study_material import (
    create_material,
    get_material,
    get_material_by_path,
    get_materials,
    get_materials_for_subjects,
    delete_material
)
from studyplanner.crud.generated_content import save_generated_content, get_generated_content
from studyplanner.crud.study_plan import (
    save_study_plan,
    get_active_study_plan,
    get_study_plan,
    update_study_plan,
    delete_study_plan
)

__all__ = [
    "create_subject",
    "get_subject",
    "get_subjects",
    "update_subject",
    "delete_subject",
    "create_exam",
    "get_exam",
    "get_exams",
    "update_exam",
    "delete_exam",
    "create_material",
    "get_material",
    "get_material_by_path",
    "get_materials",
    "get_materials_for_subjects",
    "delete_material",
    "save_generated_content",
    "get_generated_content",
    "save_study_plan",
    "get_active_study_plan",
    "get_study_plan",
    "update_study_plan",
    "delete_study_plan",
]
