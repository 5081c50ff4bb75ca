from langchain_anthropic import ChatAnthropic
from langchain_ollama import ChatOllama
from langchain_core.language_models.chat_models import BaseChatModel
from typing import Callable, Optional
from studyplanner.config import settings

# Signature shared by get_llm and the fakes tests inject in its place
LLMFactory = Callable[..., BaseChatModel]


def get_llm(json_mode: bool = False, temperature: float = 0.7, max_tokens: Optional[int] = None) -> BaseChatModel:
    """Factory function to return the chat model selected in config"""
    if settings.ai_provider.lower() == "claude":
        return _claude_llm(temperature, max_tokens)
    return _ollama_llm(json_mode, temperature, max_tokens)


def _ollama_llm(json_mode: bool, temperature: float, max_tokens: Optional[int]) -> ChatOllama:
    """Local Ollama for development"""
    kwargs = {
        "model": settings.ollama_model,
        "base_url": settings.ollama_base_url,
        "temperature": temperature,
    }
    if json_mode:
        kwargs["format"] = "json"
    if max_tokens:
        kwargs["num_predict"] = max_tokens
    return ChatOllama(**kwargs)


def _claude_llm(temperature: float, max_tokens: Optional[int]) -> ChatAnthropic:
    """Claude API for production"""
    if not settings.claude_api_key:
        raise ValueError("CLAUDE_API_KEY not set in environment variables")

    return ChatAnthropic(
        model=settings.claude_model,
        api_key=settings.claude_api_key,
        temperature=temperature,
        max_tokens=max_tokens or 4096,
        timeout=settings.llm_timeout_seconds,
    )
