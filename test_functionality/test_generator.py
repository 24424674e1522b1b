"""
Test the LangChain text generator adapter and the LLM builder guards.
"""
import asyncio
import sys
import os
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from domain.exceptions import GenerationError
from domain.models import ChatRole, ChatTurn
from infrastructure.llm.generator import LangChainTextGenerator, to_messages
from infrastructure.llm.llm_builder import build_llm


def test_transcript_maps_to_messages_in_order():
    history = [ChatTurn(ChatRole.USER, "q1"), ChatTurn(ChatRole.ASSISTANT, "a1")]
    messages = to_messages("system", history, "q2")

    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert [m.content for m in messages] == ["system", "q1", "a1", "q2"]


def test_generate_returns_stripped_content():
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="  **1. Summary**  ")

    assert asyncio.run(LangChainTextGenerator(llm).generate("prompt")) == "**1. Summary**"
    sent = llm.invoke.call_args.args[0]
    assert isinstance(sent[0], HumanMessage)
    assert sent[0].content == "prompt"


def test_plain_string_models_are_supported():
    llm = MagicMock()
    llm.invoke.return_value = "plain completion"
    assert asyncio.run(LangChainTextGenerator(llm).generate("prompt")) == "plain completion"


def test_chat_sends_full_history():
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="a2")
    history = [ChatTurn(ChatRole.USER, "q1"), ChatTurn(ChatRole.ASSISTANT, "a1")]

    reply = asyncio.run(LangChainTextGenerator(llm).chat("system", history, "q2"))

    assert reply == "a2"
    assert len(llm.invoke.call_args.args[0]) == 4


def test_provider_errors_raise_generation_error():
    llm = MagicMock()
    llm.invoke.side_effect = RuntimeError("rate limited")
    generator = LangChainTextGenerator(llm)

    with pytest.raises(GenerationError):
        asyncio.run(generator.generate("prompt"))
    with pytest.raises(GenerationError):
        asyncio.run(generator.chat("system", [], "q1"))


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError, match="Unsupported LLM_PROVIDER"):
        build_llm(provider="gemini", model="x")


def test_openai_requires_key():
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        build_llm(provider="openai", model="gpt-4.1-mini", openai_api_key="")
