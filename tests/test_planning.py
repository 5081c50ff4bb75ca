import asyncio
import threading
from datetime import date

from studyplanner import planning
from studyplanner.crud import create_material, create_subject
from studyplanner.schemas import ExamInput, StudyPlanRequest, SubjectCreate

from conftest import LONG_TEXT


def test_material_query_runs_off_the_event_loop(db, storage, monkeypatch):
    math = create_subject(db, "user-1", SubjectCreate(name="Math"))
    path = storage.save("user-1", "limits.txt", ("Limits. " + LONG_TEXT).encode())
    create_material(db, "user-1", "limits.txt", path, "txt", math.id)

    query_threads = []
    real_query = planning.get_materials_for_subjects

    def recording_query(*args):
        query_threads.append(threading.get_ident())
        return real_query(*args)

    monkeypatch.setattr(planning, "get_materials_for_subjects", recording_query)
    request = StudyPlanRequest(
        exams=[ExamInput(subject="Math", exam_name="Calculus", exam_date=date(2030, 1, 10), subject_id=math.id)],
        study_hours_per_day=2,
        start_date=date(2030, 1, 1),
    )

    excerpts = asyncio.run(planning.collect_material_content(db, storage, "user-1", request))

    assert [e.file_name for e in excerpts["Math"]] == ["limits.txt"]
    assert query_threads and query_threads[0] != threading.get_ident()
