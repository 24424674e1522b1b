"""
infrastructure.llm.generator - TextGeneratorPort over a LangChain model.

    - generate() sends one HumanMessage (stateless analysis)
    - chat() sends SystemMessage + the whole transcript + the new message

Both are async and wrap the sync invoke() in run_in_executor. Any provider
failure is raised as GenerationError; the consultation engine owns the
user-facing fallback text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from domain.exceptions import GenerationError
from domain.models import ChatRole, ChatTurn

logger = logging.getLogger(__name__)


def to_messages(
    system_instruction: str,
    history: Sequence[ChatTurn],
    message: str,
) -> list[BaseMessage]:
    """Map a transcript onto LangChain messages, oldest first."""
    messages: list[BaseMessage] = [SystemMessage(content=system_instruction)]
    for turn in history:
        if turn.role == ChatRole.USER:
            messages.append(HumanMessage(content=turn.text))
        else:
            messages.append(AIMessage(content=turn.text))
    messages.append(HumanMessage(content=message))
    return messages


def _content(result: Any) -> str:
    # Chat models return a message, OllamaLLM returns a plain string.
    content = getattr(result, "content", result)
    if isinstance(content, list):
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return (content or "").strip()


class LangChainTextGenerator:
    """Implements TextGeneratorPort for any model returned by build_llm()."""

    def __init__(self, llm: Any):
        self._llm = llm

    async def generate(self, prompt: str) -> str:
        try:
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(
                None, self._llm.invoke, [HumanMessage(content=prompt)],
            )
        except Exception as e:
            logger.error("Text generation failed: %s", e)
            raise GenerationError(f"Failed to generate text: {e}") from e
        return _content(result)

    async def chat(
        self,
        system_instruction: str,
        history: Sequence[ChatTurn],
        message: str,
    ) -> str:
        messages = to_messages(system_instruction, history, message)
        try:
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(None, self._llm.invoke, messages)
        except Exception as e:
            logger.error("Chat completion failed after %d turn(s): %s", len(history), e)
            raise GenerationError(f"Failed to continue the conversation: {e}") from e
        return _content(result)
