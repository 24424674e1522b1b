"""
Test the ClinicalTrials.gov source: request parameters, study parsing,
region inference and the empty-list failure policy.
"""
import asyncio
import sys
import os
from unittest.mock import MagicMock

import requests

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from domain.models import Region
from infrastructure.providers.clinical_trials import (
    ClinicalTrialsSource,
    infer_regions,
    parse_study,
)


def _study(nct_id, official=None, brief="Brief title", locations=()):
    identification = {"nctId": nct_id, "briefTitle": brief}
    if official:
        identification["officialTitle"] = official
    return {
        "protocolSection": {
            "identificationModule": identification,
            "statusModule": {
                "overallStatus": "RECRUITING",
                "lastUpdatePostDateStruct": {"date": "2024-06-01"},
            },
            "designModule": {"phases": ["PHASE3"]},
            "conditionsModule": {"conditions": ["Duchenne Muscular Dystrophy"]},
            "contactsLocationsModule": {"locations": list(locations)},
            "descriptionModule": {"briefSummary": "Summary."},
            "eligibilityModule": {"eligibilityCriteria": "Ambulatory boys."},
        }
    }


SHANGHAI = {"facility": "Children's Hospital of Fudan University", "city": "Shanghai", "country": "China"}
BOSTON = {"facility": "Boston Children's Hospital", "city": "Boston", "state": "Massachusetts", "country": "United States"}
PARIS = {"facility": "Hôpital Necker", "city": "Paris", "country": "France"}
COLUMBUS = {"facility": "Nationwide Children's", "city": "Columbus", "state": "Ohio", "country": "United States"}


def _session(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session = MagicMock()
    session.get.return_value = response
    return session


def test_request_parameters():
    session = _session({"studies": []})
    asyncio.run(ClinicalTrialsSource(session=session).list_trials())

    call = session.get.call_args
    assert call.args[0] == "https://clinicaltrials.gov/api/v2/studies"
    assert call.kwargs["params"] == {
        "query.cond": "Duchenne Muscular Dystrophy",
        "filter.overallStatus": "RECRUITING|ENROLLING_BY_INVITATION|ACTIVE_NOT_RECRUITING",
        "pageSize": 25,
    }
    assert call.kwargs["timeout"] == 30.0


def test_title_prefers_official_title():
    assert parse_study(_study("NCT1", official="Official", brief="Brief")).title == "Official"
    assert parse_study(_study("NCT2", brief="Brief only")).title == "Brief only"


def test_parse_study_fields():
    trial = parse_study(_study("NCT00000001", locations=[SHANGHAI, BOSTON]))
    assert trial.nct_id == "NCT00000001"
    assert trial.status == "RECRUITING"
    assert trial.phases == ["PHASE3"]
    assert trial.locations == [SHANGHAI["facility"], BOSTON["facility"]]
    assert trial.eligibility == "Ambulatory boys."
    assert trial.last_update == "2024-06-01"
    assert trial.url == "https://clinicaltrials.gov/study/NCT00000001"


def test_shanghai_is_asia():
    assert infer_regions([SHANGHAI]) == [Region.ASIA]


def test_regions_are_deduplicated():
    regions = infer_regions([BOSTON, PARIS, COLUMBUS])
    assert sorted(regions) == sorted([Region.NORTH_AMERICA, Region.EUROPE])
    assert len(regions) == 2


def test_region_match_is_word_based():
    indianapolis = {"city": "Indianapolis", "state": "Indiana", "country": "United States"}
    assert infer_regions([indianapolis]) == [Region.NORTH_AMERICA]
    assert infer_regions(["Seoul, Korea, Republic of"]) == [Region.ASIA]
    assert infer_regions([]) == []


def test_malformed_study_is_skipped():
    session = _session({"studies": [_study("NCT1", locations=[SHANGHAI]), {"protocolSection": {}}]})
    trials = asyncio.run(ClinicalTrialsSource(session=session).list_trials())
    assert [t.nct_id for t in trials] == ["NCT1"]
    assert trials[0].regions == [Region.ASIA]


def test_network_error_returns_empty_list():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.Timeout("slow")
    assert asyncio.run(ClinicalTrialsSource(session=session).list_trials()) == []


def test_http_error_returns_empty_list():
    session = _session({})
    session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
    assert asyncio.run(ClinicalTrialsSource(session=session).list_trials()) == []


def test_invalid_json_returns_empty_list():
    session = _session(None)
    session.get.return_value.json.side_effect = ValueError("not json")
    assert asyncio.run(ClinicalTrialsSource(session=session).list_trials()) == []
