"""
infrastructure.llm.llm_builder - Builds the chat model behind consultations.

The provider comes from LLM_PROVIDER:
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama (or OllamaLLM for plain completion)

Provider packages are imported lazily so that only the selected one has to
be reachable at runtime.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

from langchain_core.language_models import BaseChatModel, BaseLLM

logger = logging.getLogger(__name__)

# The four-section analyses get truncated below this.
GROQ_DEFAULT_MAX_TOKENS = 2048

LLM = Union[BaseChatModel, BaseLLM]


def _require(value: str, env_name: str, provider: str) -> str:
    if not value:
        raise ValueError(f"{env_name} is required when LLM_PROVIDER='{provider}'")
    return value


def _openai(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> LLM:
    api_key = _require(opts["openai_api_key"], "OPENAI_API_KEY", "openai")
    from langchain_openai import ChatOpenAI

    kwargs: Dict[str, Any] = {"model": model, "temperature": temperature, "api_key": api_key}
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens
    return ChatOpenAI(**kwargs)


def _groq(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> LLM:
    api_key = _require(opts["groq_api_key"], "GROQ_API_KEY", "groq")
    from langchain_groq import ChatGroq

    return ChatGroq(
        model=model,
        temperature=temperature,
        api_key=api_key,
        max_tokens=max_tokens or GROQ_DEFAULT_MAX_TOKENS,
    )


def _ollama(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> LLM:
    kwargs: Dict[str, Any] = {
        "model": model,
        "temperature": temperature,
        "base_url": opts["ollama_base_url"],
    }
    if max_tokens is not None:
        kwargs["num_predict"] = max_tokens
    if opts["chat_model"]:
        from langchain_ollama import ChatOllama
        return ChatOllama(**kwargs)

    from langchain_ollama import OllamaLLM
    return OllamaLLM(**kwargs)


_BUILDERS: Dict[str, Callable[..., LLM]] = {
    "openai": _openai,
    "groq": _groq,
    "ollama": _ollama,
}


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0.3,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
    chat_model: bool = True,
) -> LLM:
    """Build a LangChain model for the given provider.

    Args:
        provider: One of "openai", "groq", "ollama" (case-insensitive).
        model: Model name for the selected provider.
        temperature: Sampling temperature.
        ollama_base_url: Ollama server URL, only used for "ollama".
        openai_api_key: API key for OpenAI.
        groq_api_key: API key for Groq.
        max_tokens: Output cap. Groq defaults to GROQ_DEFAULT_MAX_TOKENS.
        chat_model: For "ollama", choose ChatOllama (system + history
                    messages) over the plain completion model.

    Raises:
        ValueError: If the provider is unknown or its API key is missing.
    """
    key = provider.lower().strip()
    builder = _BUILDERS.get(key)
    if builder is None:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            f"Must be one of: {', '.join(_BUILDERS)}."
        )

    logger.info("Building %s LLM (model=%s, temperature=%.2f)", key, model, temperature)
    return builder(
        model,
        temperature,
        max_tokens,
        openai_api_key=openai_api_key,
        groq_api_key=groq_api_key,
        ollama_base_url=ollama_base_url,
        chat_model=chat_model,
    )
