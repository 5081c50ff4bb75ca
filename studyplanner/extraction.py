import asyncio
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import pdfplumber
from docx import Document as DocxDocument
from pptx import Presentation

from studyplanner.config import settings
from studyplanner.errors import ValidationError
from studyplanner.schemas import MaterialExcerpt

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".pptx", ".txt")


class MaterialTextExtractor:
    """
    Pull plain text out of uploaded study materials.
    Supports PDF, DOCX, PPTX and plain text.
    """

    @staticmethod
    def read_pdf(data: bytes) -> str:
        parts = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page in pdf.pages:
                parts.append(page.extract_text() or "")
        return "\n".join(parts)

    @staticmethod
    def read_docx(data: bytes) -> str:
        doc = DocxDocument(io.BytesIO(data))
        return "\n".join(p.text for p in doc.paragraphs)

    @staticmethod
    def read_pptx(data: bytes) -> str:
        prs = Presentation(io.BytesIO(data))
        parts = []
        for slide in prs.slides:
            for shape in slide.shapes:
                if hasattr(shape, "text"):
                    parts.append(shape.text)
        return "\n".join(parts)

    @staticmethod
    def read_txt(data: bytes) -> str:
        return data.decode("utf-8", errors="replace")

    @staticmethod
    def auto_extract(file_name: str, data: bytes) -> str:
        """
        Detect the file type from its extension and return cleaned text.

        Whitespace is collapsed, text shorter than ``min_text_chars`` is
        rejected and anything past ``max_extracted_chars`` is cut off.
        """
        file_ext = Path(file_name).suffix.lower()

        if file_ext == ".pdf":
            text = MaterialTextExtractor.read_pdf(data)
        elif file_ext == ".docx":
            text = MaterialTextExtractor.read_docx(data)
        elif file_ext == ".pptx":
            text = MaterialTextExtractor.read_pptx(data)
        elif file_ext == ".txt":
            text = MaterialTextExtractor.read_txt(data)
        else:
            raise ValidationError(f"Unsupported file type '{file_ext}'. Use PDF, DOCX, PPTX or TXT.")

        text = re.sub(r"\s+", " ", text).strip()

        if len(text) < settings.min_text_chars:
            raise ValidationError("Could not extract enough text from the file")

        if len(text) > settings.max_extracted_chars:
            text = text[:settings.max_extracted_chars] + "..."

        return text


def extract_text(file_name: str, data: bytes) -> str:
    return MaterialTextExtractor.auto_extract(file_name, data)


@dataclass
class ExtractionJob:
    """One material to pull an excerpt from for the plan prompt"""
    subject_name: str
    file_name: str
    file_path: str


def select_extraction_jobs(materials_by_subject: Dict[str, list], per_subject: int = None) -> List[ExtractionJob]:
    """Keep at most ``per_subject`` materials for each subject name"""
    per_subject = per_subject or settings.materials_per_subject
    jobs = []
    for subject_name, materials in materials_by_subject.items():
        for material in materials[:per_subject]:
            jobs.append(ExtractionJob(subject_name, material.file_name, material.file_path))
    return jobs


async def gather_material_excerpts(jobs: List[ExtractionJob], storage, excerpt_chars: int = None) -> Dict[str, List[MaterialExcerpt]]:
    """
    Extract every job concurrently and group the excerpts by subject.

    A failing extraction is logged and left out; it never cancels the
    others. Grouping follows job order, not completion order.
    """
    excerpt_chars = excerpt_chars or settings.material_excerpt_chars

    def _extract(job: ExtractionJob) -> str:
        data = storage.download(job.file_path)
        return extract_text(job.file_name, data)

    results = await asyncio.gather(
        *(asyncio.to_thread(_extract, job) for job in jobs),
        return_exceptions=True
    )

    grouped: Dict[str, List[MaterialExcerpt]] = {}
    for job, result in zip(jobs, results):
        if isinstance(result, BaseException):
            logger.warning("Skipping material %s for %s: %s", job.file_path, job.subject_name, result)
            continue
        grouped.setdefault(job.subject_name, []).append(
            MaterialExcerpt(file_name=job.file_name, content=result[:excerpt_chars])
        )

    return grouped
