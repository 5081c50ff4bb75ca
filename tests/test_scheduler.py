from datetime import date

import pytest

from studyplanner.config import settings
from studyplanner.errors import ValidationError
from studyplanner.scheduler import (
    STUDY_TECHNIQUES,
    build_plan_request,
    compute_study_window,
    prioritize_exams,
)
from studyplanner.schemas import ExamInput, MaterialExcerpt


def exam(subject, name, day):
    return ExamInput(subject=subject, exam_name=name, exam_date=day)


class TestStudyWindow:
    def test_ends_day_before_distant_exam(self):
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 10)])
        assert window.end_date == date(2024, 1, 9)
        assert window.total_days == 9
        assert window.days_until_exam == 9
        assert not window.urgent

    def test_same_day_exam_is_one_urgent_day(self):
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 1)])
        assert window.end_date == date(2024, 1, 1)
        assert window.total_days == 1
        assert window.urgent

    def test_exam_two_days_away_keeps_exam_day(self):
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 3)])
        assert window.end_date == date(2024, 1, 3)
        assert window.total_days == 3

    def test_uses_last_exam(self):
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 5), date(2024, 1, 20), date(2024, 1, 2)])
        assert window.end_date == date(2024, 1, 19)

    def test_no_exams_rejected(self):
        with pytest.raises(ValidationError):
            compute_study_window(date(2024, 1, 1), [])

    def test_exam_before_start_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            compute_study_window(date(2024, 1, 10), [date(2024, 1, 5), date(2024, 1, 20)])
        assert "2024-01-05" in excinfo.value.message


def test_prioritize_orders_by_date_and_keeps_ties_stable():
    a = exam("Math", "A", date(2024, 2, 1))
    b = exam("Physics", "B", date(2024, 1, 15))
    c = exam("Chemistry", "C", date(2024, 2, 1))

    assert [e.exam_name for e in prioritize_exams([a, b, c])] == ["B", "A", "C"]


class TestPlanRequest:
    def test_lists_exams_period_and_hours(self):
        exams = [
            exam("Physics", "Mechanics", date(2024, 1, 5)),
            ExamInput(subject="Math", exam_name="Algebra", exam_date=date(2024, 1, 10), syllabus="Quadratics"),
        ]
        window = compute_study_window(date(2024, 1, 1), [e.exam_date for e in exams])

        text = build_plan_request(exams, 2.5, window)

        assert "1. Physics - Mechanics on 2024-01-05" in text
        assert "2. Math - Algebra on 2024-01-10" in text
        assert "Topics/Syllabus: Quadratics" in text
        assert "2024-01-01 to 2024-01-09 (9 days)" in text
        assert "Available study hours per day: 2.5" in text
        assert "150 minutes" in text
        assert "URGENT" not in text
        for technique in STUDY_TECHNIQUES:
            assert technique in text

    def test_urgent_notes_and_materials(self):
        exams = [exam("Biology", "Cells", date(2024, 1, 2))]
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 2)])
        materials = {"Biology": [MaterialExcerpt(file_name="cells.pdf", content="Mitochondria")]}

        text = build_plan_request(exams, 3, window, "Prefer mornings", materials)

        assert "URGENT" in text
        assert "Available study hours per day: 3" in text
        assert "Student's Notes/Preferences: Prefer mornings" in text
        assert "--- Biology Materials ---" in text
        assert "File: cells.pdf" in text
        assert "(2 days)" in text

    def test_client_materials_are_capped(self):
        exams = [exam("Biology", "Cells", date(2024, 1, 9))]
        window = compute_study_window(date(2024, 1, 1), [date(2024, 1, 9)])
        body = "x" * (settings.material_excerpt_chars + 5000)
        materials = {
            "Biology": [MaterialExcerpt(file_name=f"notes{i}.txt", content=body) for i in range(5)]
        }

        text = build_plan_request(exams, 2, window, material_content=materials)

        assert text.count("File: ") == settings.materials_per_subject
        assert "x" * settings.material_excerpt_chars in text
        assert "x" * (settings.material_excerpt_chars + 1) not in text
