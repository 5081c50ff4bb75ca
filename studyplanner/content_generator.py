import logging
from typing import Any, Dict, List

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser, StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError as SchemaValidationError

from studyplanner.config import settings
from studyplanner.errors import MalformedResponseError, UpstreamServiceError, ValidationError
from studyplanner.llm import LLMFactory, get_llm
from studyplanner.schemas import Flashcard, QuizQuestion

logger = logging.getLogger(__name__)

DETAIL_LEVELS: Dict[str, Dict[str, Any]] = {
    "brief": {
        "max_tokens": 750,
        "temperature": 0.5,
        "instruction": "Create a concise summary focusing on the most critical concepts and key takeaways. "
                       "Keep it brief but informative - perfect for quick review.",
    },
    "standard": {
        "max_tokens": 2000,
        "temperature": 0.7,
        "instruction": "Create a comprehensive summary covering all core concepts with clear explanations. "
                       "Include important definitions and how concepts relate to each other.",
    },
    "detailed": {
        "max_tokens": 4000,
        "temperature": 0.7,
        "instruction": "Create an in-depth, thorough summary that explores all concepts in detail. Include context, "
                       "examples, connections between ideas, and deeper explanations that promote true understanding.",
    },
}

SUMMARY_SYSTEM = """You are an expert educational tutor helping students prepare for exams. Your summaries should EXPLAIN concepts clearly, not just list topics.

For each key concept you identify:
- Define it in simple, clear terms
- Explain WHY it matters and its significance
- Show HOW it connects to other concepts
- Provide context or examples where helpful

Structure your summary hierarchically: start with core concepts, then supporting details. Use clear headings, bullet points, and formatting to enhance readability.

Write as if teaching a student who needs to truly understand the material, not just memorize it. {instruction}"""

FLASHCARD_SYSTEM = (
    "You are a helpful study assistant. Create flashcards from study materials. Return ONLY a JSON array of "
    "flashcards. Each flashcard should have: question, answer, and difficulty (easy/medium/hard). "
    "Create 10-15 flashcards covering the main concepts."
)

QUIZ_SYSTEM = (
    "You are a helpful study assistant. Create multiple-choice quiz questions from study materials. Return ONLY a "
    "JSON array. Each question should have: question, options (array of 4 strings), correctAnswer (index 0-3), "
    "and explanation. Create 10 questions."
)

SYLLABUS_SYSTEM = (
    "You are a helpful study assistant. Extract and list ONLY the main topics, chapters, or syllabus items from the "
    "provided study material. Ignore preface, author information, publishing details, etc. Format as a clean, "
    "comma-separated list of topics. Be concise and focus on the actual subject matter topics."
)


def _require_text(text: str) -> str:
    text = (text or "").strip()
    if len(text) < settings.min_text_chars:
        raise ValidationError(f"Text must be at least {settings.min_text_chars} characters long")
    return text


def _run_chain(chain, inputs: dict, what: str):
    """Invoke a chain, mapping parse failures and upstream failures to our errors"""
    try:
        return chain.invoke(inputs)
    except OutputParserException as e:
        raise MalformedResponseError(f"Failed to parse {what} from AI response") from e
    except Exception as e:
        logger.exception("%s generation failed", what.capitalize())
        raise UpstreamServiceError(f"{what} generation failed: {e}", f"Failed to generate {what}") from e


def _as_list(data, key: str) -> list:
    """Models sometimes wrap the array in an object"""
    if isinstance(data, dict):
        for candidate in (key, "items", "data", "questions", "cards"):
            if isinstance(data.get(candidate), list):
                return data[candidate]
    if not isinstance(data, list):
        raise MalformedResponseError(f"Invalid {key} format")
    return data


def generate_summary(text: str, detail_level: str = "standard", llm_factory: LLMFactory = get_llm) -> str:
    """Summarize study material at the requested detail level"""
    text = _require_text(text)
    config = DETAIL_LEVELS.get(detail_level)
    if config is None:
        raise ValidationError("Invalid detail level. Must be 'brief', 'standard', or 'detailed'")

    llm = llm_factory(temperature=config["temperature"], max_tokens=config["max_tokens"])
    prompt = ChatPromptTemplate.from_messages([
        ("system", SUMMARY_SYSTEM),
        ("human", "Please create a {detail_level} summary of the following study material:\n\n{text}")
    ])
    chain = prompt | llm | StrOutputParser()

    summary = _run_chain(chain, {
        "instruction": config["instruction"],
        "detail_level": detail_level,
        "text": text
    }, "summary")

    summary = (summary or "").strip()
    if not summary:
        raise MalformedResponseError("AI returned an empty summary")
    return summary


def generate_flashcards(text: str, llm_factory: LLMFactory = get_llm) -> List[Flashcard]:
    """Create question/answer cards from study material"""
    text = _require_text(text)
    llm = llm_factory(temperature=0.7, max_tokens=2000)
    prompt = ChatPromptTemplate.from_messages([
        ("system", FLASHCARD_SYSTEM),
        ("human", "Create flashcards from this material:\n\n{text}\n\n"
                  "Return only a JSON array in this exact format: "
                  '[{{"question": "...", "answer": "...", "difficulty": "easy|medium|hard"}}]')
    ])
    chain = prompt | llm | JsonOutputParser()

    data = _as_list(_run_chain(chain, {"text": text}, "flashcards"), "flashcards")

    cards = []
    for item in data:
        if not isinstance(item, dict):
            continue
        question = str(item.get("question", "")).strip()
        answer = str(item.get("answer", "")).strip()
        difficulty = str(item.get("difficulty") or "medium").lower()
        if question and answer:
            cards.append(Flashcard(
                question=question,
                answer=answer,
                difficulty=difficulty if difficulty in ("easy", "medium", "hard") else "medium"
            ))

    if not cards:
        raise MalformedResponseError("AI returned no usable flashcards")
    return cards


def generate_quiz(text: str, llm_factory: LLMFactory = get_llm) -> List[QuizQuestion]:
    """Create four-option multiple choice questions from study material"""
    text = _require_text(text)
    llm = llm_factory(temperature=0.7, max_tokens=2500)
    prompt = ChatPromptTemplate.from_messages([
        ("system", QUIZ_SYSTEM),
        ("human", "Create a quiz from this material:\n\n{text}\n\n"
                  "Return only a JSON array in this exact format: "
                  '[{{"question": "...", "options": ["A", "B", "C", "D"], "correctAnswer": 0, "explanation": "..."}}]')
    ])
    chain = prompt | llm | JsonOutputParser()

    data = _as_list(_run_chain(chain, {"text": text}, "quiz"), "quiz")

    questions = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            questions.append(QuizQuestion.model_validate(item))
        except SchemaValidationError:
            logger.debug("Dropping malformed quiz question %r", item)

    if not questions:
        raise MalformedResponseError("AI returned no usable quiz questions")
    return questions


def extract_syllabus(text: str, llm_factory: LLMFactory = get_llm) -> str:
    """List the main topics of a material as a comma-separated string"""
    text = _require_text(text)
    llm = llm_factory(temperature=0.3, max_tokens=500)
    prompt = ChatPromptTemplate.from_messages([
        ("system", SYLLABUS_SYSTEM),
        ("human", "Extract the main topics/syllabus from this study material:\n\n{text}\n\n"
                  "Return ONLY a clean list of topics, separated by commas. "
                  'Example: "Linear equations, Quadratic equations, Factorization, Simultaneous equations"')
    ])
    chain = prompt | llm | StrOutputParser()

    return (_run_chain(chain, {"text": text}, "syllabus") or "").strip()
