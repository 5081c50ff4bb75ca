import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from studyplanner import content_generator
from studyplanner.errors import MalformedResponseError, UpstreamServiceError, ValidationError

from conftest import LONG_TEXT, FakeLLMFactory


class ExplodingModel(FakeListChatModel):
    def _call(self, *args, **kwargs):
        raise ConnectionError("ollama is not running")


def test_summary_uses_detail_level_settings():
    factory = FakeLLMFactory(["## Photosynthesis\nLight becomes sugar."])

    summary = content_generator.generate_summary(LONG_TEXT, "brief", llm_factory=factory)

    assert summary.startswith("## Photosynthesis")
    assert factory.calls == [{"temperature": 0.5, "max_tokens": 750}]


def test_summary_validation():
    factory = FakeLLMFactory(["unused"])
    with pytest.raises(ValidationError):
        content_generator.generate_summary("short", llm_factory=factory)
    with pytest.raises(ValidationError):
        content_generator.generate_summary(LONG_TEXT, "exhaustive", llm_factory=factory)
    assert factory.calls == []


def test_empty_summary_is_malformed():
    with pytest.raises(MalformedResponseError):
        content_generator.generate_summary(LONG_TEXT, llm_factory=FakeLLMFactory(["   "]))


def test_model_failure_is_upstream_error():
    factory = lambda **kwargs: ExplodingModel(responses=["x"])
    with pytest.raises(UpstreamServiceError) as excinfo:
        content_generator.generate_summary(LONG_TEXT, llm_factory=factory)
    assert excinfo.value.public_message == "Failed to generate summary"


def test_flashcards_parse_fenced_array_and_normalize_difficulty():
    cards = [
        {"question": "What does chlorophyll absorb?", "answer": "Light", "difficulty": "EASY"},
        {"question": "Where is carbon fixed?", "answer": "Calvin cycle", "difficulty": "extreme"},
        {"question": "", "answer": "dropped"},
    ]
    factory = FakeLLMFactory(["```json\n" + json.dumps(cards) + "\n```"])

    result = content_generator.generate_flashcards(LONG_TEXT, llm_factory=factory)

    assert [(c.answer, c.difficulty) for c in result] == [("Light", "easy"), ("Calvin cycle", "medium")]


def test_flashcards_wrapped_in_object():
    raw = json.dumps({"flashcards": [{"question": "Q", "answer": "A"}]})
    result = content_generator.generate_flashcards(LONG_TEXT, llm_factory=FakeLLMFactory([raw]))
    assert result[0].difficulty == "medium"


def test_flashcards_invalid_json():
    with pytest.raises(MalformedResponseError):
        content_generator.generate_flashcards(LONG_TEXT, llm_factory=FakeLLMFactory(["not json"]))


def test_quiz_drops_invalid_questions():
    questions = [
        {"question": "Pigment?", "options": ["Chlorophyll", "Keratin", "Melanin", "Heme"], "correctAnswer": 0,
         "explanation": "Plants"},
        {"question": "Three options", "options": ["a", "b", "c"], "correctAnswer": 1},
        {"question": "Bad index", "options": ["a", "b", "c", "d"], "correctAnswer": 7},
    ]
    factory = FakeLLMFactory([json.dumps(questions)])

    quiz = content_generator.generate_quiz(LONG_TEXT, llm_factory=factory)

    assert len(quiz) == 1
    assert quiz[0].correct_answer == 0
    assert quiz[0].model_dump(by_alias=True)["correctAnswer"] == 0


def test_quiz_with_nothing_usable():
    raw = json.dumps([{"question": "Three options", "options": ["a", "b", "c"], "correctAnswer": 1}])
    with pytest.raises(MalformedResponseError):
        content_generator.generate_quiz(LONG_TEXT, llm_factory=FakeLLMFactory([raw]))


def test_syllabus():
    factory = FakeLLMFactory(["  Light reactions, Calvin cycle \n"])
    assert content_generator.extract_syllabus(LONG_TEXT, llm_factory=factory) == "Light reactions, Calvin cycle"
    assert factory.calls == [{"temperature": 0.3, "max_tokens": 500}]
