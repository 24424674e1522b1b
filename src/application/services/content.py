"""
application.services.content - Personalized content feeds.

Front door to the three providers for one logged-in user:

    - refuses to load anything until the user has a configured profile
    - orders articles so the user's interest areas come first
    - flags trials that have sites in the user's region

Each view ("articles", "trials", "drugs") carries a generation counter.
Starting a load bumps it; a load that finishes after a newer load started,
or after close_view(), is stale and returns None instead of its result.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.exceptions import ProfileRequiredError
from domain.models import Article, Drug, InterestArea, Profile
from domain.ports import AnalyzableEntity, ArticleSourcePort, DrugSourcePort, TrialSourcePort
from application.context import SessionContext
from application.dto import ArticleFeed, TrialListing

logger = logging.getLogger(__name__)

ARTICLES_VIEW = "articles"
TRIALS_VIEW = "trials"
DRUGS_VIEW = "drugs"

# Lower-case keywords matched against title + abstract.
INTEREST_KEYWORDS: dict[InterestArea, tuple[str, ...]] = {
    InterestArea.MEDICATIONS: (
        "drug", "therapy", "treatment", "trial", "steroid", "corticosteroid", "vamorolone",
        "givinostat", "deflazacort", "pharmac",
    ),
    InterestArea.DAILY_CARE: (
        "rehabilitation", "physiotherapy", "physical therapy", "care", "quality of life",
        "exercise", "nutrition", "bone", "scoliosis", "orthos",
    ),
    InterestArea.HEART_LUNGS: (
        "cardiac", "cardiomyopathy", "heart", "respiratory", "pulmonary", "lung",
        "ventilat",
    ),
    InterestArea.GENE_THERAPY: (
        "gene therapy", "aav", "micro-dystrophin", "microdystrophin", "crispr",
        "gene editing", "exon skipping", "antisense",
    ),
    InterestArea.BASIC_SCIENCE: (
        "mdx", "mouse", "mice", "mechanism", "pathway", "cell", "model", "in vitro",
    ),
}


def matches_interests(article: Article, interests: tuple[InterestArea, ...]) -> bool:
    haystack = f"{article.title} {article.abstract}".lower()
    return any(
        keyword in haystack
        for interest in interests
        for keyword in INTEREST_KEYWORDS.get(interest, ())
    )


def rank_articles(articles: list[Article], profile: Profile) -> list[Article]:
    """Stable re-order: articles touching the user's interests first."""
    if not profile.interests:
        return list(articles)
    return sorted(articles, key=lambda a: 0 if matches_interests(a, profile.interests) else 1)


class ContentFeedService:
    """Loads the article, trial and drug feeds for a profiled user."""

    def __init__(
        self,
        article_source: ArticleSourcePort,
        trial_source: TrialSourcePort,
        drug_source: DrugSourcePort,
    ):
        self._articles = article_source
        self._trials = trial_source
        self._drugs = drug_source
        self._generations: dict[str, int] = {}

    # ------------------------------------------------------------------
    # View relevance
    # ------------------------------------------------------------------

    def _begin(self, view: str) -> int:
        self._generations[view] = self._generations.get(view, 0) + 1
        return self._generations[view]

    def _is_current(self, view: str, generation: int) -> bool:
        current = self._generations.get(view) == generation
        if not current:
            logger.debug("Discarding stale %s load (generation %d)", view, generation)
        return current

    def close_view(self, view: str) -> None:
        """Invalidate any load of this view still in flight."""
        self._begin(view)

    @staticmethod
    def _require_profile(ctx: SessionContext) -> Profile:
        if not ctx.has_profile:
            raise ProfileRequiredError("Complete your profile before browsing content.")
        return ctx.profile

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    async def load_articles(self, ctx: SessionContext, months: int = 1) -> Optional[ArticleFeed]:
        """Articles from the last `months` months, or the samples when there are none."""
        profile = self._require_profile(ctx)
        if months < 1:
            raise ValueError(f"months must be a positive integer, got {months}")

        generation = self._begin(ARTICLES_VIEW)
        result = await self._articles.fetch(months)
        if not self._is_current(ARTICLES_VIEW, generation):
            return None

        if result.ok:
            articles, is_fallback = list(result.items), False
        else:
            logger.info("Article feed falling back to samples (%s)", result.status.value)
            articles, is_fallback = self._articles.samples(), True

        return ArticleFeed(
            months=months,
            articles=rank_articles(articles, profile),
            is_fallback=is_fallback,
        )

    async def load_trials(self, ctx: SessionContext) -> Optional[list[TrialListing]]:
        profile = self._require_profile(ctx)
        generation = self._begin(TRIALS_VIEW)
        trials = await self._trials.list_trials()
        if not self._is_current(TRIALS_VIEW, generation):
            return None
        return [
            TrialListing(trial=t, matches_region=profile.region in t.regions)
            for t in trials
        ]

    async def load_drugs(self, ctx: SessionContext) -> Optional[list[Drug]]:
        self._require_profile(ctx)
        generation = self._begin(DRUGS_VIEW)
        drugs = await self._drugs.list_drugs()
        if not self._is_current(DRUGS_VIEW, generation):
            return None
        return drugs

    async def find_entity(
        self,
        ctx: SessionContext,
        kind: str,
        entity_id: str,
        months: int = 1,
    ) -> Optional[AnalyzableEntity]:
        """Look an entity up in a fresh load of its feed."""
        if kind == "article":
            feed = await self.load_articles(ctx, months)
            candidates = feed.articles if feed else []
        elif kind == "trial":
            listings = await self.load_trials(ctx)
            candidates = [listing.trial for listing in listings or []]
        elif kind == "drug":
            candidates = await self.load_drugs(ctx) or []
            entity_id = entity_id.lower()
            return next((d for d in candidates if d.brand_name.lower() == entity_id), None)
        else:
            raise ValueError(f"Unknown content kind: '{kind}'")

        return next((e for e in candidates if e.entity_id == entity_id), None)
