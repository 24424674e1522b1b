"""
Test saved inquiry ordering, in-place updates and deletion.
"""
import asyncio
import sys
import os

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from application.context import SessionContext
from domain.entities import SavedInquiry, UserDatabaseEntry
from domain.models import ChatRole, ChatTurn, Credentials
from fakes import sample_profile


def _inquiry(inquiry_id: str, summary: str = "Summary", turns=()) -> SavedInquiry:
    return SavedInquiry(
        id=inquiry_id,
        date="2024-06-01",
        entity_id=f"entity-{inquiry_id}",
        entity_title=f"Title {inquiry_id}",
        summary=summary,
        chat_history=list(turns),
    )


def _logged_in_with_profile(factory) -> SessionContext:
    ctx = SessionContext()

    async def run():
        await factory.create_authentication_service().login(ctx, Credentials("DMDsetup#1", "52011"))
        await factory.create_profile_service().save_user_profile(ctx, sample_profile())

    asyncio.run(run())
    return ctx


def test_new_inquiries_are_prepended(factory):
    ctx = _logged_in_with_profile(factory)
    inquiries = factory.create_inquiry_service()

    async def run():
        await inquiries.save_inquiry(ctx, _inquiry("A"))
        await inquiries.save_inquiry(ctx, _inquiry("B"))
        return await inquiries.list_inquiries(ctx)

    assert [i.id for i in asyncio.run(run())] == ["B", "A"]


def test_existing_id_is_updated_in_place(factory):
    ctx = _logged_in_with_profile(factory)
    inquiries = factory.create_inquiry_service()
    turns = [ChatTurn(ChatRole.USER, "Is this for exon 51?"), ChatTurn(ChatRole.ASSISTANT, "Yes.")]

    async def run():
        await inquiries.save_inquiry(ctx, _inquiry("A"))
        await inquiries.save_inquiry(ctx, _inquiry("B"))
        await inquiries.save_inquiry(ctx, _inquiry("A", summary="Updated", turns=turns))
        return await factory.create_authentication_service().get_user_data()

    stored = asyncio.run(run())
    assert [i.id for i in stored.saved_inquiries] == ["B", "A"]
    assert stored.saved_inquiries[1].summary == "Updated"
    assert stored.saved_inquiries[1].chat_history == turns
    assert stored.profile == sample_profile()


def test_delete_inquiry(factory):
    ctx = _logged_in_with_profile(factory)
    inquiries = factory.create_inquiry_service()

    async def run():
        await inquiries.save_inquiry(ctx, _inquiry("A"))
        await inquiries.save_inquiry(ctx, _inquiry("B"))
        deleted = await inquiries.delete_inquiry(ctx, "A")
        missing = await inquiries.delete_inquiry(ctx, "A")
        return deleted, missing, await inquiries.list_inquiries(ctx)

    deleted, missing, remaining = asyncio.run(run())
    assert deleted is True
    assert missing is False
    assert [i.id for i in remaining] == ["B"]
    assert ctx.profile == sample_profile()


def test_get_inquiry(factory):
    ctx = _logged_in_with_profile(factory)
    inquiries = factory.create_inquiry_service()
    asyncio.run(inquiries.save_inquiry(ctx, _inquiry("A", summary="Kept")))

    assert asyncio.run(inquiries.get_inquiry(ctx, "A")).summary == "Kept"
    assert asyncio.run(inquiries.get_inquiry(ctx, "Z")) is None


def test_save_without_user_is_noop(factory):
    ctx = SessionContext()
    inquiries = factory.create_inquiry_service()
    asyncio.run(inquiries.save_inquiry(ctx, _inquiry("A")))
    assert asyncio.run(inquiries.list_inquiries(ctx)) == []


def test_entry_serializes_unicode_transcript():
    entry = UserDatabaseEntry(
        username="DMDsetup#1",
        profile=sample_profile(),
        saved_inquiries=[_inquiry("A", turns=[ChatTurn(ChatRole.USER, "这个试验适合我吗？")])],
    )
    assert UserDatabaseEntry.from_dict(entry.to_dict()) == entry
