"""
application.dto - Data Transfer Objects for service input/output.

These are the structured inputs that adapters hand to services and the
structured results services return (CLI commands, tests).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from domain.exceptions import ProfileIncompleteError
from domain.models import (
    AgeGroup,
    AmbulatoryStatus,
    Article,
    ClinicalTrial,
    InterestArea,
    Profile,
    Region,
    SteroidUse,
)

ADULT_AGE = 18


@dataclass
class ProfileDraft:
    """The settings form while it is being filled in.

    Every field is optional here; to_profile() refuses to build a Profile
    until age (group or exact), ambulatory status and region are set.
    """
    age_group: Optional[AgeGroup] = None
    age: Optional[int] = None
    genetic_profile: str = ""
    ambulatory_status: Optional[AmbulatoryStatus] = None
    on_steroids: Optional[SteroidUse] = None
    region: Optional[Region] = None
    interests: list[InterestArea] = field(default_factory=list)
    clinical_notes: str = ""

    @classmethod
    def from_profile(cls, profile: Optional[Profile]) -> ProfileDraft:
        """Pre-fill the form from a saved profile (or start empty)."""
        if profile is None:
            return cls()
        return cls(
            age_group=profile.age_group,
            age=profile.age,
            genetic_profile=profile.genetic_profile,
            ambulatory_status=profile.ambulatory_status,
            on_steroids=profile.on_steroids,
            region=profile.region,
            interests=list(profile.interests),
            clinical_notes=profile.clinical_notes,
        )

    @property
    def resolved_age_group(self) -> Optional[AgeGroup]:
        if self.age_group is not None:
            return self.age_group
        if self.age is not None:
            return AgeGroup.ADULT if self.age >= ADULT_AGE else AgeGroup.CHILD
        return None

    @property
    def missing_fields(self) -> list[str]:
        missing = []
        if self.resolved_age_group is None:
            missing.append("age")
        if self.ambulatory_status is None:
            missing.append("ambulatory_status")
        if self.region is None:
            missing.append("region")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    def toggle_interest(self, interest: InterestArea) -> None:
        if interest in self.interests:
            self.interests.remove(interest)
        else:
            self.interests.append(interest)

    def to_profile(self) -> Profile:
        missing = self.missing_fields
        if missing:
            raise ProfileIncompleteError(
                f"Profile is missing required fields: {', '.join(missing)}"
            )
        return Profile(
            age_group=self.resolved_age_group,
            age=self.age,
            genetic_profile=self.genetic_profile.strip() or "Not provided",
            ambulatory_status=self.ambulatory_status,
            on_steroids=self.on_steroids or SteroidUse.UNSURE,
            region=self.region,
            interests=tuple(self.interests),
            clinical_notes=self.clinical_notes.strip(),
        )


@dataclass(frozen=True)
class ArticleFeed:
    """Articles for one time range, flagged when they are built-in samples."""
    months: int
    articles: list[Article]
    is_fallback: bool = False


@dataclass(frozen=True)
class TrialListing:
    """A trial as shown in the feed, flagged when it recruits in the user's region."""
    trial: ClinicalTrial
    matches_region: bool = False

    def display_fields(self) -> dict[str, Any]:
        return {**self.trial.display_fields(), "matches_region": self.matches_region}
