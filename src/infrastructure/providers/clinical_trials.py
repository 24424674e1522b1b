"""
infrastructure.providers.clinical_trials - ClinicalTrials.gov API v2 source.

Implements TrialSourcePort. One GET to /studies filtered to the disease
condition and the statuses a family can still act on, capped at one page.

Unlike the article source there is no offline sample set: an empty trial
list is a legitimate state, so every failure maps to [].
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Iterable, Optional

import requests

from domain.models import ClinicalTrial, Region

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("RECRUITING", "ENROLLING_BY_INVITATION", "ACTIVE_NOT_RECRUITING")

# Country name (lower case) -> region. Matched as a whole word against the
# flattened location text, so "Shanghai, China" resolves and "Indiana" does
# not match "india".
COUNTRY_REGIONS: tuple[tuple[str, Region], ...] = (
    ("china", Region.ASIA),
    ("japan", Region.ASIA),
    ("korea", Region.ASIA),
    ("taiwan", Region.ASIA),
    ("hong kong", Region.ASIA),
    ("singapore", Region.ASIA),
    ("india", Region.ASIA),
    ("israel", Region.ASIA),
    ("united states", Region.NORTH_AMERICA),
    ("canada", Region.NORTH_AMERICA),
    ("france", Region.EUROPE),
    ("germany", Region.EUROPE),
    ("united kingdom", Region.EUROPE),
    ("italy", Region.EUROPE),
    ("spain", Region.EUROPE),
    ("netherlands", Region.EUROPE),
    ("belgium", Region.EUROPE),
    ("sweden", Region.EUROPE),
    ("switzerland", Region.EUROPE),
    ("poland", Region.EUROPE),
    ("denmark", Region.EUROPE),
    ("australia", Region.OCEANIA),
    ("zealand", Region.OCEANIA),
    ("brazil", Region.SOUTH_AMERICA),
    ("argentina", Region.SOUTH_AMERICA),
    ("chile", Region.SOUTH_AMERICA),
    ("colombia", Region.SOUTH_AMERICA),
)

_COUNTRY_PATTERNS = tuple(
    (re.compile(rf"\b{re.escape(name)}\b"), region) for name, region in COUNTRY_REGIONS
)


def location_text(location: Any) -> str:
    """Flatten one location (dict from the API, or a plain string) to lower case."""
    if isinstance(location, dict):
        parts = [location.get(k) for k in ("facility", "city", "state", "country")]
        return ", ".join(str(p) for p in parts if p).lower()
    return str(location).lower()


def infer_regions(locations: Iterable[Any]) -> list[Region]:
    """Regions mentioned anywhere in the locations, each listed once."""
    haystack = " | ".join(location_text(loc) for loc in locations)
    regions: list[Region] = []
    for pattern, region in _COUNTRY_PATTERNS:
        if region not in regions and pattern.search(haystack):
            regions.append(region)
    return regions


def parse_study(study: dict[str, Any]) -> ClinicalTrial:
    """Normalize one study from the /studies response.

    Raises KeyError/TypeError when the mandatory modules are missing.
    """
    protocol = study["protocolSection"]
    identification = protocol["identificationModule"]
    status = protocol.get("statusModule", {})
    locations = protocol.get("contactsLocationsModule", {}).get("locations", [])

    return ClinicalTrial(
        nct_id=identification["nctId"],
        title=identification.get("officialTitle") or identification.get("briefTitle", ""),
        status=status.get("overallStatus", ""),
        phases=list(protocol.get("designModule", {}).get("phases", [])),
        conditions=list(protocol.get("conditionsModule", {}).get("conditions", [])),
        locations=[loc.get("facility", "") for loc in locations if loc.get("facility")],
        regions=infer_regions(locations),
        summary=protocol.get("descriptionModule", {}).get("briefSummary", ""),
        eligibility=protocol.get("eligibilityModule", {}).get("eligibilityCriteria", ""),
        last_update=status.get("lastUpdatePostDateStruct", {}).get("date", ""),
    )


class ClinicalTrialsSource:
    """Fetch actively relevant disease trials from ClinicalTrials.gov.

    Implements TrialSourcePort (structural typing, no explicit inheritance).
    """

    def __init__(
        self,
        base_url: str = "https://clinicaltrials.gov/api/v2/studies",
        condition: str = "Duchenne Muscular Dystrophy",
        statuses: tuple[str, ...] = ACTIVE_STATUSES,
        page_size: int = 25,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url
        self._condition = condition
        self._statuses = statuses
        self._page_size = page_size
        self._timeout = timeout
        self._http = session or requests.Session()

    def _list_sync(self) -> list[ClinicalTrial]:
        params = {
            "query.cond": self._condition,
            "filter.overallStatus": "|".join(self._statuses),
            "pageSize": self._page_size,
        }
        try:
            response = self._http.get(self._base_url, params=params, timeout=self._timeout)
            response.raise_for_status()
            studies = response.json().get("studies", [])
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Error fetching clinical trials: %s", e)
            return []

        trials = []
        for study in studies:
            try:
                trials.append(parse_study(study))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed study: %s", e)

        logger.info("Found %d trials for condition: %s", len(trials), self._condition)
        return trials

    async def list_trials(self) -> list[ClinicalTrial]:
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, self._list_sync)
        except Exception:
            logger.exception("Unexpected ClinicalTrials.gov failure")
            return []
