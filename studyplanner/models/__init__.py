from studyplanner.models.subject import Subject
from studyplanner.models.exam import Exam
from studyplanner.models.study_material import StudyMaterial
from studyplanner.models.generated_content import GeneratedContent, CONTENT_TYPES
from studyplanner.models.study_plan import StudyPlan

__all__ = [
    "Subject",
    "Exam",
    "StudyMaterial",
    "GeneratedContent",
    "CONTENT_TYPES",
    "StudyPlan",
]
