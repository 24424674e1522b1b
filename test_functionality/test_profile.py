"""
Test profile drafts and wholesale profile persistence.
"""
import asyncio
import sys
import os

import pytest

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from application.context import SessionContext
from application.dto import ProfileDraft
from domain.entities import SavedInquiry
from domain.exceptions import ProfileIncompleteError
from domain.models import (
    AgeGroup,
    AmbulatoryStatus,
    Credentials,
    InterestArea,
    Profile,
    Region,
    SteroidUse,
)
from fakes import sample_profile


def _logged_in(factory) -> SessionContext:
    ctx = SessionContext()
    asyncio.run(
        factory.create_authentication_service().login(ctx, Credentials("DMDsetup#1", "52011"))
    )
    return ctx


# ---------------------------------------------------------------------------
# ProfileDraft
# ---------------------------------------------------------------------------

def test_empty_draft_lists_required_fields():
    draft = ProfileDraft()
    assert draft.missing_fields == ["age", "ambulatory_status", "region"]
    assert not draft.is_complete
    with pytest.raises(ProfileIncompleteError):
        draft.to_profile()


@pytest.mark.parametrize("age,expected", [(8, AgeGroup.CHILD), (17, AgeGroup.CHILD), (18, AgeGroup.ADULT)])
def test_exact_age_derives_age_group(age, expected):
    draft = ProfileDraft(age=age, ambulatory_status=AmbulatoryStatus.MIXED, region=Region.EUROPE)
    assert draft.to_profile().age_group == expected


def test_draft_defaults():
    profile = ProfileDraft(
        age_group=AgeGroup.ADULT,
        ambulatory_status=AmbulatoryStatus.WHEELCHAIR,
        region=Region.OTHER,
    ).to_profile()
    assert profile.genetic_profile == "Not provided"
    assert profile.on_steroids == SteroidUse.UNSURE
    assert profile.interests == ()
    assert profile.is_configured


def test_toggle_interest():
    draft = ProfileDraft()
    draft.toggle_interest(InterestArea.HEART_LUNGS)
    draft.toggle_interest(InterestArea.GENE_THERAPY)
    draft.toggle_interest(InterestArea.HEART_LUNGS)
    assert draft.interests == [InterestArea.GENE_THERAPY]


def test_draft_from_profile_round_trips():
    profile = sample_profile(clinical_notes="FVC 80%")
    assert ProfileDraft.from_profile(profile).to_profile() == profile


# ---------------------------------------------------------------------------
# ProfileService
# ---------------------------------------------------------------------------

def test_incomplete_draft_persists_nothing(factory):
    ctx = _logged_in(factory)
    profiles = factory.create_profile_service()

    draft = ProfileDraft(age=10, ambulatory_status=AmbulatoryStatus.AMBULATORY)
    assert asyncio.run(profiles.submit(ctx, draft)) is None

    stored = asyncio.run(factory.create_authentication_service().get_user_data())
    assert stored.profile is None


def test_saved_profile_reads_back_equal(factory):
    ctx = _logged_in(factory)
    profile = sample_profile(
        interests=(InterestArea.HEART_LUNGS, InterestArea.DAILY_CARE),
        clinical_notes="心脏超声正常",
    )

    asyncio.run(factory.create_profile_service().save_user_profile(ctx, profile))
    stored = asyncio.run(factory.create_authentication_service().get_user_data())

    assert stored.profile == profile
    assert ctx.profile == profile


def test_profile_save_keeps_inquiries(factory):
    ctx = _logged_in(factory)
    inquiry = SavedInquiry(
        id="1700000000000", date="2024-06-01", entity_id="111",
        entity_title="Exon skipping outcomes", summary="Summary",
    )

    async def run():
        await factory.create_inquiry_service().save_inquiry(ctx, inquiry)
        await factory.create_profile_service().save_user_profile(ctx, sample_profile())
        await factory.create_profile_service().save_user_profile(
            ctx, sample_profile(region=Region.EUROPE),
        )
        return await factory.create_authentication_service().get_user_data()

    stored = asyncio.run(run())
    assert stored.profile.region == Region.EUROPE
    assert [i.id for i in stored.saved_inquiries] == ["1700000000000"]


def test_submit_complete_draft(factory):
    ctx = _logged_in(factory)
    draft = ProfileDraft(
        age_group=AgeGroup.CHILD,
        ambulatory_status=AmbulatoryStatus.AMBULATORY,
        region=Region.ASIA,
        genetic_profile="  Exon 45 deletion  ",
    )

    saved = asyncio.run(factory.create_profile_service().submit(ctx, draft))

    assert isinstance(saved, Profile)
    assert saved.genetic_profile == "Exon 45 deletion"
    assert ctx.has_profile


def test_save_without_user_is_noop(factory):
    ctx = SessionContext()
    asyncio.run(factory.create_profile_service().save_user_profile(ctx, sample_profile()))
    assert asyncio.run(factory.create_authentication_service().get_user_data()) is None


def test_profile_json_round_trip():
    profile = sample_profile(age=None, age_group=AgeGroup.ADULT, on_steroids=SteroidUse.NO)
    assert Profile.from_dict(profile.to_dict()) == profile
