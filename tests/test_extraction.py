import asyncio

import pytest

from studyplanner.errors import NotFoundError, ValidationError
from studyplanner.extraction import (
    ExtractionJob,
    extract_text,
    gather_material_excerpts,
    select_extraction_jobs,
)

from conftest import LONG_TEXT


class FakeMaterial:
    def __init__(self, file_name, file_path):
        self.file_name = file_name
        self.file_path = file_path


def test_txt_extraction_collapses_whitespace():
    raw = ("Chapter 1\n\n\tCells   and\ttissues. " + LONG_TEXT).encode()
    assert extract_text("notes.TXT", raw).startswith("Chapter 1 Cells and tissues. Photosynthesis")


def test_short_text_rejected():
    with pytest.raises(ValidationError):
        extract_text("notes.txt", b"too short")


def test_unsupported_type_rejected():
    with pytest.raises(ValidationError) as excinfo:
        extract_text("notes.xlsx", LONG_TEXT.encode())
    assert ".xlsx" in excinfo.value.message


def test_long_text_truncated(monkeypatch):
    from studyplanner.config import settings
    monkeypatch.setattr(settings, "max_extracted_chars", 60)

    text = extract_text("notes.txt", LONG_TEXT.encode())

    assert text == LONG_TEXT[:60] + "..."


def test_select_jobs_caps_per_subject():
    materials = {
        "Math": [FakeMaterial(f"m{i}.txt", f"u/m{i}.txt") for i in range(4)],
        "Physics": [FakeMaterial("p.txt", "u/p.txt")],
    }

    jobs = select_extraction_jobs(materials, per_subject=2)

    assert [(j.subject_name, j.file_name) for j in jobs] == [
        ("Math", "m0.txt"), ("Math", "m1.txt"), ("Physics", "p.txt")
    ]


def test_gather_skips_failures_and_keeps_job_order(storage):
    math_a = storage.save("u", "a.txt", ("Math A. " + LONG_TEXT).encode())
    math_b = storage.save("u", "b.txt", ("Math B. " + LONG_TEXT).encode())
    physics = storage.save("u", "p.txt", ("Physics. " + LONG_TEXT).encode())
    jobs = [
        ExtractionJob("Math", "a.txt", math_a),
        ExtractionJob("Chemistry", "gone.txt", "u/gone.txt"),
        ExtractionJob("Math", "b.txt", math_b),
        ExtractionJob("Physics", "p.txt", physics),
        ExtractionJob("Physics", "short.txt", storage.save("u", "short.txt", b"tiny")),
    ]

    excerpts = asyncio.run(gather_material_excerpts(jobs, storage, excerpt_chars=20))

    assert list(excerpts) == ["Math", "Physics"]
    assert [e.file_name for e in excerpts["Math"]] == ["a.txt", "b.txt"]
    assert excerpts["Math"][0].content == ("Math A. " + LONG_TEXT)[:20]
    assert len(excerpts["Physics"]) == 1


def test_storage_round_trip_and_path_checks(storage):
    path = storage.save("user 1", "../../evil name.txt", b"data")

    assert path.startswith("user_1/")
    assert path.endswith("_evil_name.txt")
    assert storage.download(path) == b"data"

    storage.delete(path)
    with pytest.raises(NotFoundError):
        storage.download(path)
    with pytest.raises(ValidationError):
        storage.download("../outside.txt")
