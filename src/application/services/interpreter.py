"""
application.services.interpreter - AI consultation for one content entity.

A Consultation is opened per selected article / trial / drug and holds:

    - the initial four-section analysis (one stateless generate() call)
    - the follow-up transcript, sent in full with every chat() call

Chat turns are queued on an asyncio.Lock so the transcript always reads
u1, a1, u2, a2 in send order. LLM failures never escape: they become the
localized apology text. Once close() is called, results that arrive later
are dropped instead of being applied.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Optional

from domain.entities import SavedInquiry
from domain.exceptions import ConsultationClosedError, ConversationBusyError, ProfileRequiredError
from domain.models import ChatRole, ChatTurn, Profile
from domain.ports import AnalyzableEntity, TextGeneratorPort
from application.context import SessionContext
from application.prompts import (
    build_analysis_prompt,
    build_chat_system_prompt,
    inquiry_title,
    message,
)
from application.services.inquiries import InquiryService

logger = logging.getLogger(__name__)


def new_inquiry_id(entity: AnalyzableEntity, now_ms: Optional[int] = None) -> str:
    """Article inquiries use the bare timestamp; trials and drugs are prefixed."""
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    if entity.kind in ("trial", "drug"):
        return f"{entity.kind}-{entity.entity_id}-{ms}"
    return str(ms)


class Consultation:
    """Conversation state for one opened entity and one profile snapshot."""

    def __init__(
        self,
        entity: AnalyzableEntity,
        profile: Profile,
        generator: TextGeneratorPort,
        language: str = "zh",
    ):
        self.entity = entity
        self.profile = profile
        self.language = language
        self.analysis: Optional[str] = None
        self.turns: list[ChatTurn] = []
        self.inquiry_id: Optional[str] = None
        self.closed = False
        self._generator = generator
        self._lock = asyncio.Lock()
        self._system_prompt = build_chat_system_prompt(entity, profile, language)

    @property
    def is_busy(self) -> bool:
        """True while a chat reply is outstanding."""
        return self._lock.locked()

    async def start(self) -> Optional[str]:
        """Generate the initial analysis. Returns None if closed meanwhile."""
        if self.closed:
            raise ConsultationClosedError("This consultation has been closed.")

        prompt = build_analysis_prompt(self.entity, self.profile, self.language)
        try:
            text = await self._generator.generate(prompt)
        except Exception as e:
            logger.error("Analysis of %s %s failed: %s", self.entity.kind, self.entity.entity_id, e)
            text = message("analysis_unavailable", self.language)
        if not text:
            text = message("analysis_empty", self.language)

        if self.closed:
            logger.debug("Dropping analysis for closed consultation %s", self.entity.entity_id)
            return None
        self.analysis = text
        return text

    async def ask(self, text: str, wait: bool = True) -> Optional[str]:
        """Send a follow-up question and return the reply.

        With wait=False a question sent while a reply is outstanding raises
        ConversationBusyError instead of queueing. Returns None when the
        consultation is closed before the reply arrives.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message must not be empty")
        if self.closed:
            raise ConsultationClosedError("This consultation has been closed.")
        if not wait and self.is_busy:
            raise ConversationBusyError("Still waiting for the previous reply.")

        async with self._lock:
            if self.closed:
                raise ConsultationClosedError("This consultation has been closed.")

            history = list(self.turns)
            user_turn = ChatTurn(ChatRole.USER, text)
            self.turns.append(user_turn)
            try:
                reply = await self._generator.chat(self._system_prompt, history, text)
            except asyncio.CancelledError:
                if self.turns and self.turns[-1] is user_turn:
                    self.turns.pop()
                raise
            except Exception as e:
                logger.error("Chat about %s failed: %s", self.entity.entity_id, e)
                reply = message("chat_unavailable", self.language)
            if not reply:
                reply = message("chat_empty", self.language)

            if self.closed:
                logger.debug("Dropping reply for closed consultation %s", self.entity.entity_id)
                return None
            self.turns.append(ChatTurn(ChatRole.ASSISTANT, reply))
            return reply

    def close(self) -> None:
        self.closed = True

    def to_inquiry(self, today: Optional[date] = None, now_ms: Optional[int] = None) -> SavedInquiry:
        """Snapshot for saving. The id is assigned once and reused on re-save."""
        if self.inquiry_id is None:
            self.inquiry_id = new_inquiry_id(self.entity, now_ms)
        return SavedInquiry(
            id=self.inquiry_id,
            date=(today or date.today()).isoformat(),
            kind=self.entity.kind,
            entity_id=self.entity.entity_id,
            entity_title=inquiry_title(self.entity, self.language),
            summary=self.analysis or "",
            chat_history=list(self.turns),
        )


class InterpreterService:
    """Opens consultations for the current user and saves them as inquiries."""

    def __init__(self, generator: TextGeneratorPort, inquiries: InquiryService):
        self._generator = generator
        self._inquiries = inquiries

    def open(self, ctx: SessionContext, entity: AnalyzableEntity) -> Consultation:
        if not ctx.has_profile:
            raise ProfileRequiredError("Complete your profile before asking the AI.")
        logger.info("Opening consultation on %s %s", entity.kind, entity.entity_id)
        return Consultation(entity, ctx.profile, self._generator, ctx.language)

    async def save(self, ctx: SessionContext, consultation: Consultation) -> SavedInquiry:
        inquiry = consultation.to_inquiry()
        await self._inquiries.save_inquiry(ctx, inquiry)
        return inquiry
