"""
domain.models - Value objects for the content and personalization layer.

These are immutable data containers with no dependencies on infrastructure
(no requests, no LangChain, no SQLite). Every content entity implements the
AnalyzableEntity capability from domain.ports: a discriminator (kind), a
stable id, a display title, the text block embedded in LLM prompts and the
fields a view renders.

Enums are str-valued so profiles and inquiries serialize to JSON as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


def _pick(labels: dict[str, str], language: str) -> str:
    return labels.get(language, labels["en"])


# ---------------------------------------------------------------------------
# Profile enums
# ---------------------------------------------------------------------------

class AgeGroup(str, Enum):
    CHILD = "child"
    ADULT = "adult"

    def label(self, language: str = "en") -> str:
        return _pick(_AGE_GROUP_LABELS[self], language)


class AmbulatoryStatus(str, Enum):
    AMBULATORY = "ambulatory"
    WHEELCHAIR = "wheelchair"
    MIXED = "mixed"

    def label(self, language: str = "en") -> str:
        return _pick(_AMBULATORY_LABELS[self], language)


class SteroidUse(str, Enum):
    YES = "yes"
    NO = "no"
    UNSURE = "unsure"

    def label(self, language: str = "en") -> str:
        return _pick(_STEROID_LABELS[self], language)


class Region(str, Enum):
    ASIA = "asia"
    NORTH_AMERICA = "north_america"
    EUROPE = "europe"
    OCEANIA = "oceania"
    SOUTH_AMERICA = "south_america"
    OTHER = "other"

    def label(self, language: str = "en") -> str:
        return _pick(_REGION_LABELS[self], language)


class InterestArea(str, Enum):
    MEDICATIONS = "medications"
    DAILY_CARE = "daily_care"
    HEART_LUNGS = "heart_lungs"
    GENE_THERAPY = "gene_therapy"
    BASIC_SCIENCE = "basic_science"

    def label(self, language: str = "en") -> str:
        return _pick(_INTEREST_LABELS[self], language)


class ArticleType(str, Enum):
    CLINICAL_TRIAL = "clinical_trial"
    REVIEW = "review"
    GUIDELINE = "guideline"
    RESEARCH = "research"

    def label(self, language: str = "en") -> str:
        return _pick(_ARTICLE_TYPE_LABELS[self], language)


_AGE_GROUP_LABELS = {
    AgeGroup.CHILD: {"en": "Child", "zh": "儿童"},
    AgeGroup.ADULT: {"en": "Adult", "zh": "成人"},
}

_AMBULATORY_LABELS = {
    AmbulatoryStatus.AMBULATORY: {"en": "Walks independently", "zh": "可独立行走"},
    AmbulatoryStatus.WHEELCHAIR: {"en": "Uses a wheelchair", "zh": "需轮椅辅助"},
    AmbulatoryStatus.MIXED: {"en": "Mixed / assisted walking", "zh": "混合/辅助行走"},
}

_STEROID_LABELS = {
    SteroidUse.YES: {"en": "Yes", "zh": "是"},
    SteroidUse.NO: {"en": "No", "zh": "否"},
    SteroidUse.UNSURE: {"en": "Unsure", "zh": "不确定"},
}

_REGION_LABELS = {
    Region.ASIA: {"en": "Asia", "zh": "亚洲"},
    Region.NORTH_AMERICA: {"en": "North America", "zh": "北美洲"},
    Region.EUROPE: {"en": "Europe", "zh": "欧洲"},
    Region.OCEANIA: {"en": "Oceania", "zh": "大洋洲"},
    Region.SOUTH_AMERICA: {"en": "South America", "zh": "南美洲"},
    Region.OTHER: {"en": "Other", "zh": "其他"},
}

_INTEREST_LABELS = {
    InterestArea.MEDICATIONS: {"en": "New drugs & clinical trials", "zh": "新药与临床试验"},
    InterestArea.DAILY_CARE: {"en": "Daily care & rehabilitation", "zh": "日常护理与康复"},
    InterestArea.HEART_LUNGS: {"en": "Heart & lung health", "zh": "心脏与肺部健康"},
    InterestArea.GENE_THERAPY: {"en": "Gene therapy", "zh": "基因疗法动态"},
    InterestArea.BASIC_SCIENCE: {"en": "Basic science", "zh": "基础科学研究"},
}

_ARTICLE_TYPE_LABELS = {
    ArticleType.CLINICAL_TRIAL: {"en": "Clinical trial", "zh": "临床试验"},
    ArticleType.REVIEW: {"en": "Review", "zh": "综述"},
    ArticleType.GUIDELINE: {"en": "Guideline / consensus", "zh": "指南/共识"},
    ArticleType.RESEARCH: {"en": "Research paper", "zh": "研究论文"},
}


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Profile:
    """Patient context used to tailor every AI-generated explanation.

    Only complete profiles exist as Profile objects; partially filled
    settings forms live in application.dto.ProfileDraft until they pass
    validation.
    """
    age_group: AgeGroup
    ambulatory_status: AmbulatoryStatus
    region: Region
    age: Optional[int] = None
    genetic_profile: str = "Not provided"
    on_steroids: SteroidUse = SteroidUse.UNSURE
    interests: tuple[InterestArea, ...] = ()
    clinical_notes: str = ""
    is_configured: bool = True

    def prompt_context(self, language: str = "en") -> str:
        """Render the profile as the patient block of an LLM prompt."""
        zh = language == "zh"
        age = self.age_group.label(language)
        if self.age is not None:
            age = f"{age} ({self.age}{' 岁' if zh else ' years'})"
        interests = ", ".join(i.label(language) for i in self.interests) or "-"
        rows = [
            ("年龄组" if zh else "Age group", age),
            ("基因突变" if zh else "Genetic mutation", self.genetic_profile),
            ("行动能力" if zh else "Ambulatory status", self.ambulatory_status.label(language)),
            ("激素使用" if zh else "Corticosteroid use", self.on_steroids.label(language)),
            ("地区" if zh else "Region", self.region.label(language)),
            ("关注领域" if zh else "Interests", interests),
        ]
        if self.clinical_notes:
            rows.append(("临床备注" if zh else "Clinical notes", self.clinical_notes))
        return "\n".join(f"- {k}: {v}" for k, v in rows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_configured": self.is_configured,
            "age_group": self.age_group.value,
            "age": self.age,
            "genetic_profile": self.genetic_profile,
            "ambulatory_status": self.ambulatory_status.value,
            "on_steroids": self.on_steroids.value,
            "region": self.region.value,
            "interests": [i.value for i in self.interests],
            "clinical_notes": self.clinical_notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        return cls(
            age_group=AgeGroup(data["age_group"]),
            ambulatory_status=AmbulatoryStatus(data["ambulatory_status"]),
            region=Region(data["region"]),
            age=data.get("age"),
            genetic_profile=data.get("genetic_profile") or "Not provided",
            on_steroids=SteroidUse(data.get("on_steroids") or SteroidUse.UNSURE.value),
            interests=tuple(InterestArea(i) for i in data.get("interests", [])),
            clinical_notes=data.get("clinical_notes", ""),
            is_configured=data.get("is_configured", True),
        )


# ---------------------------------------------------------------------------
# Content entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Article:
    """A PubMed research article."""
    id: str
    title: str
    abstract: str
    authors: list[str] = field(default_factory=list)
    publication_date: str = ""
    journal: str = ""
    url: str = ""
    tags: list[ArticleType] = field(default_factory=list)

    kind = "article"

    @property
    def entity_id(self) -> str:
        return self.id

    @property
    def display_title(self) -> str:
        return self.title

    def prompt_context(self, language: str = "en") -> str:
        if language == "zh":
            return f"文章标题: {self.title}\n摘要: {self.abstract}"
        return f"Article title: {self.title}\nAbstract: {self.abstract}"

    def display_fields(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "journal": self.journal,
            "date": self.publication_date,
            "authors": ", ".join(self.authors[:3]) + (" et al." if len(self.authors) > 3 else ""),
            "tags": [t.value for t in self.tags],
            "url": self.url,
        }


@dataclass(frozen=True)
class ClinicalTrial:
    """A ClinicalTrials.gov study in one of the actively relevant states."""
    nct_id: str
    title: str
    status: str
    phases: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    regions: list[Region] = field(default_factory=list)
    summary: str = ""
    eligibility: str = ""
    last_update: str = ""

    kind = "trial"

    @property
    def entity_id(self) -> str:
        return self.nct_id

    @property
    def display_title(self) -> str:
        return self.title

    @property
    def url(self) -> str:
        return f"https://clinicaltrials.gov/study/{self.nct_id}"

    def prompt_context(self, language: str = "en") -> str:
        phases = ", ".join(self.phases) or "-"
        if language == "zh":
            return (
                f"临床试验: {self.title}\nID: {self.nct_id}\n状态: {self.status}\n"
                f"阶段: {phases}\n标准: {self.eligibility}\n摘要: {self.summary}"
            )
        return (
            f"Clinical trial: {self.title}\nID: {self.nct_id}\nStatus: {self.status}\n"
            f"Phase: {phases}\nEligibility: {self.eligibility}\nSummary: {self.summary}"
        )

    def display_fields(self) -> dict[str, Any]:
        return {
            "id": self.nct_id,
            "title": self.title,
            "status": self.status.replace("_", " "),
            "phase": ", ".join(self.phases),
            "sites": len(self.locations),
            "regions": [r.value for r in self.regions],
            "last_update": self.last_update,
            "url": self.url,
        }


@dataclass(frozen=True)
class Drug:
    """An FDA-approved DMD therapy from the curated reference table."""
    brand_name: str
    generic_name: str
    manufacturer: str
    approval_date: str
    approval_year: str
    indication: str
    dosage: str
    label_url: str
    brand_name_cn: Optional[str] = None
    generic_name_cn: Optional[str] = None

    kind = "drug"

    @property
    def entity_id(self) -> str:
        return self.brand_name

    @property
    def display_title(self) -> str:
        return self.brand_name

    def localized_brand_name(self, language: str = "en") -> str:
        if language == "zh" and self.brand_name_cn:
            return self.brand_name_cn
        return self.brand_name

    def prompt_context(self, language: str = "en") -> str:
        if language == "zh":
            return (
                f"药物: {self.brand_name} ({self.brand_name_cn or 'N/A'})\n"
                f"通用名: {self.generic_name}\n生产商: {self.manufacturer}\n"
                f"批准年份: {self.approval_year}\n"
                f"适应症: {self.indication}\n剂量: {self.dosage}"
            )
        return (
            f"Drug: {self.brand_name}\nGeneric name: {self.generic_name}\n"
            f"Manufacturer: {self.manufacturer}\nApproved: {self.approval_year}\n"
            f"Indication: {self.indication}\nDosage: {self.dosage}"
        )

    def display_fields(self) -> dict[str, Any]:
        return {
            "id": self.brand_name,
            "title": self.brand_name,
            "localized_name": self.brand_name_cn or "",
            "generic_name": self.generic_name,
            "manufacturer": self.manufacturer,
            "approved": self.approval_date,
            "url": self.label_url,
        }


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """One message of a consultation transcript."""
    role: ChatRole
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatTurn:
        return cls(role=ChatRole(data["role"]), text=data.get("text", ""))


# ---------------------------------------------------------------------------
# Provider results
# ---------------------------------------------------------------------------

class FetchStatus(str, Enum):
    """Outcome of one upstream fetch."""
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult:
    """Entities from one provider call, with the reason when there are none."""
    status: FetchStatus
    items: list = field(default_factory=list)
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.OK


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Credentials:
    """Username/password pair typed into the login form."""
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class UserIdentity:
    """An authenticated user."""
    username: str
