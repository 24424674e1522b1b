"""
Test the consultation engine: prompt assembly, fallbacks, transcript order,
the closed-consultation guard and inquiry ids.
"""
import asyncio
import sys
import os
from datetime import date

import pytest

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from application.context import SessionContext
from application.prompts import build_analysis_prompt, build_chat_system_prompt, inquiry_title
from application.services.interpreter import Consultation, new_inquiry_id
from domain.exceptions import ConsultationClosedError, ConversationBusyError, ProfileRequiredError
from domain.models import ChatRole, Credentials, Region
from infrastructure.providers.fda_drugs import DMD_DRUGS
from fakes import ScriptedGenerator, sample_article, sample_profile, sample_trial

ELEVIDYS = DMD_DRUGS[0]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

def test_analysis_prompt_carries_profile_and_entity():
    prompt = build_analysis_prompt(sample_article(), sample_profile(), "zh")
    assert "Exon 51 deletion" in prompt
    assert "亚洲" in prompt
    assert "Exon skipping outcomes" in prompt
    assert "**1. 研究概要（家属版）**" in prompt
    assert "**4. 给家庭启示**" in prompt
    assert "免责声明" in prompt


def test_analysis_headings_depend_on_kind():
    trial_prompt = build_analysis_prompt(sample_trial(), sample_profile(), "en")
    drug_prompt = build_analysis_prompt(ELEVIDYS, sample_profile(), "en")
    assert "**3. Eligibility match**" in trial_prompt
    assert "Male, 4 to 12 years, ambulatory." in trial_prompt
    assert "**3. Suitability for this patient**" in drug_prompt
    assert "delandistrogene moxeparvovec-rokl" in drug_prompt
    assert "Answer in English." in drug_prompt


def test_chat_system_prompt_restates_context():
    system = build_chat_system_prompt(sample_trial(), sample_profile(), "en")
    assert "NCT00000001" in system
    assert "Exon 51 deletion" in system
    assert "Do not discuss other articles, trials or drugs" in system
    assert "Disclaimer:" in system


def test_inquiry_titles():
    assert inquiry_title(sample_article(), "zh") == "Exon skipping outcomes"
    assert inquiry_title(sample_trial(), "zh") == "临床试验匹配: A Phase 3 Study of Exon 51 Skipping"
    assert inquiry_title(ELEVIDYS, "zh") == "药物适配: 依力维迪"
    assert inquiry_title(ELEVIDYS, "en") == "Drug fit: Elevidys"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

def test_start_stores_analysis():
    generator = ScriptedGenerator(analysis="**1. 研究概要**\n内容")
    consultation = Consultation(sample_article(), sample_profile(), generator)

    assert asyncio.run(consultation.start()) == "**1. 研究概要**\n内容"
    assert consultation.analysis == "**1. 研究概要**\n内容"
    assert len(generator.prompts) == 1


def test_generation_failure_becomes_apology():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator(fail=True))
    assert asyncio.run(consultation.start()) == "服务暂时不可用，请稍后再试。"


def test_empty_generation_becomes_message():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator(empty=True))
    assert asyncio.run(consultation.start()) == "抱歉，暂时无法生成摘要。"


def test_english_apology():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator(fail=True), "en")
    assert asyncio.run(consultation.start()).startswith("The service is temporarily unavailable")


def test_late_analysis_is_discarded_after_close():
    class SlowGenerator(ScriptedGenerator):
        async def generate(self, prompt):
            await asyncio.sleep(0.02)
            return "late"

    consultation = Consultation(sample_article(), sample_profile(), SlowGenerator())

    async def run():
        task = asyncio.create_task(consultation.start())
        await asyncio.sleep(0)
        consultation.close()
        return await task

    assert asyncio.run(run()) is None
    assert consultation.analysis is None


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

def test_transcript_keeps_send_order_when_first_reply_is_slow():
    generator = ScriptedGenerator(delays={"q1": 0.05})
    consultation = Consultation(sample_article(), sample_profile(), generator)

    async def run():
        return await asyncio.gather(consultation.ask("q1"), consultation.ask("q2"))

    replies = asyncio.run(run())

    assert replies == ["reply to q1", "reply to q2"]
    assert [(t.role, t.text) for t in consultation.turns] == [
        (ChatRole.USER, "q1"),
        (ChatRole.ASSISTANT, "reply to q1"),
        (ChatRole.USER, "q2"),
        (ChatRole.ASSISTANT, "reply to q2"),
    ]


def test_whole_history_is_sent_each_turn():
    generator = ScriptedGenerator()
    consultation = Consultation(sample_trial(), sample_profile(), generator)

    async def run():
        for question in ("q1", "q2", "q3"):
            await consultation.ask(question)

    asyncio.run(run())

    system, history, message = generator.chat_calls[-1]
    assert message == "q3"
    assert [t.text for t in history] == ["q1", "reply to q1", "q2", "reply to q2"]
    assert "NCT00000001" in system
    assert all(call[0] == system for call in generator.chat_calls)


def test_chat_failure_becomes_apology_turn():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator(fail=True))

    assert asyncio.run(consultation.ask("还有其他选择吗？")) == "网络连接出现问题，请重试。"
    assert consultation.turns[-1].role == ChatRole.ASSISTANT
    assert consultation.turns[-1].text == "网络连接出现问题，请重试。"


def test_busy_conversation_rejects_without_wait():
    consultation = Consultation(
        sample_article(), sample_profile(), ScriptedGenerator(delays={"q1": 0.05}),
    )

    async def run():
        first = asyncio.create_task(consultation.ask("q1"))
        await asyncio.sleep(0)
        assert consultation.is_busy
        with pytest.raises(ConversationBusyError):
            await consultation.ask("q2", wait=False)
        return await first

    assert asyncio.run(run()) == "reply to q1"
    assert len(consultation.turns) == 2


def test_late_reply_is_discarded_after_close():
    consultation = Consultation(
        sample_article(), sample_profile(), ScriptedGenerator(delays={"q1": 0.02}),
    )

    async def run():
        task = asyncio.create_task(consultation.ask("q1"))
        await asyncio.sleep(0)
        consultation.close()
        return await task

    assert asyncio.run(run()) is None
    assert [t.role for t in consultation.turns] == [ChatRole.USER]


def test_closed_consultation_rejects_questions():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator())
    consultation.close()
    with pytest.raises(ConsultationClosedError):
        asyncio.run(consultation.ask("q1"))


def test_blank_question_is_rejected():
    consultation = Consultation(sample_article(), sample_profile(), ScriptedGenerator())
    with pytest.raises(ValueError):
        asyncio.run(consultation.ask("   "))


# ---------------------------------------------------------------------------
# Inquiries
# ---------------------------------------------------------------------------

def test_inquiry_id_formats():
    assert new_inquiry_id(sample_article(), 1700000000000) == "1700000000000"
    assert new_inquiry_id(sample_trial(), 1700000000000) == "trial-NCT00000001-1700000000000"
    assert new_inquiry_id(ELEVIDYS, 1700000000000) == "drug-Elevidys-1700000000000"


def test_inquiry_snapshot_and_stable_id():
    consultation = Consultation(sample_trial(), sample_profile(), ScriptedGenerator(), "en")

    async def run():
        await consultation.start()
        await consultation.ask("Am I eligible?")

    asyncio.run(run())
    first = consultation.to_inquiry(today=date(2024, 6, 1), now_ms=1)
    second = consultation.to_inquiry(today=date(2024, 6, 2), now_ms=2)

    assert first.id == second.id == "trial-NCT00000001-1"
    assert first.date == "2024-06-01"
    assert first.kind == "trial"
    assert first.entity_id == "NCT00000001"
    assert first.entity_title == "Trial match: A Phase 3 Study of Exon 51 Skipping"
    assert first.summary == consultation.analysis
    assert [t.text for t in first.chat_history] == ["Am I eligible?", "reply to Am I eligible?"]


def test_saving_twice_updates_in_place(factory):
    ctx = SessionContext()

    async def run():
        await factory.create_authentication_service().login(ctx, Credentials("DMDsetup#1", "52011"))
        await factory.create_profile_service().save_user_profile(ctx, sample_profile())
        interpreter = factory.create_interpreter_service()
        consultation = interpreter.open(ctx, ELEVIDYS)
        await consultation.start()
        await interpreter.save(ctx, consultation)
        await consultation.ask("Does it help exon 51?")
        await interpreter.save(ctx, consultation)
        return await factory.create_inquiry_service().list_inquiries(ctx)

    saved = asyncio.run(run())
    assert len(saved) == 1
    assert saved[0].id.startswith("drug-Elevidys-")
    assert saved[0].entity_title == "药物适配: 依力维迪"
    assert len(saved[0].chat_history) == 2


def test_open_requires_profile(factory):
    ctx = SessionContext()
    asyncio.run(
        factory.create_authentication_service().login(ctx, Credentials("DMDsetup#1", "52011"))
    )
    with pytest.raises(ProfileRequiredError):
        factory.create_interpreter_service().open(ctx, sample_article())


def test_consultation_uses_profile_snapshot():
    profile = sample_profile(region=Region.EUROPE)
    consultation = Consultation(sample_article(), profile, ScriptedGenerator())
    asyncio.run(consultation.start())
    assert "欧洲" in consultation._generator.prompts[0]


def test_cancelled_question_leaves_no_unanswered_turn():
    generator = ScriptedGenerator(delays={"q1": 1.0})
    consultation = Consultation(sample_article(), sample_profile(), generator)

    async def run():
        task = asyncio.create_task(consultation.ask("q1"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert consultation.turns == []
        return await consultation.ask("q2")

    assert asyncio.run(run()) == "reply to q2"
    assert [t.text for t in consultation.turns] == ["q2", "reply to q2"]
    assert generator.chat_calls[-1][1] == []
