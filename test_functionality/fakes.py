"""
In-memory stand-ins for the LLM and the content providers, shared by tests.
"""
import asyncio
import sys
import os

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from domain.exceptions import GenerationError
from domain.models import (
    AgeGroup,
    AmbulatoryStatus,
    Article,
    ArticleType,
    ClinicalTrial,
    FetchResult,
    FetchStatus,
    InterestArea,
    Profile,
    Region,
    SteroidUse,
)


def sample_profile(**overrides) -> Profile:
    fields = dict(
        age_group=AgeGroup.CHILD,
        age=8,
        genetic_profile="Exon 51 deletion",
        ambulatory_status=AmbulatoryStatus.AMBULATORY,
        on_steroids=SteroidUse.YES,
        region=Region.ASIA,
        interests=(InterestArea.GENE_THERAPY,),
        clinical_notes="",
    )
    fields.update(overrides)
    return Profile(**fields)


def sample_article(article_id="111", title="Exon skipping outcomes", abstract="Results.") -> Article:
    return Article(
        id=article_id,
        title=title,
        abstract=abstract,
        authors=["Smith J"],
        publication_date="2024-05-03",
        journal="Neurology",
        url=f"https://pubmed.ncbi.nlm.nih.gov/{article_id}/",
        tags=[ArticleType.RESEARCH],
    )


def sample_trial(nct_id="NCT00000001", regions=(Region.ASIA,)) -> ClinicalTrial:
    return ClinicalTrial(
        nct_id=nct_id,
        title="A Phase 3 Study of Exon 51 Skipping",
        status="RECRUITING",
        phases=["PHASE3"],
        conditions=["Duchenne Muscular Dystrophy"],
        locations=["Fudan Children's Hospital"],
        regions=list(regions),
        summary="Evaluates safety and efficacy.",
        eligibility="Male, 4 to 12 years, ambulatory.",
        last_update="2024-06-01",
    )


class ScriptedGenerator:
    """TextGeneratorPort double that records every call.

    `delays` maps a chat message to seconds to wait before answering, so
    tests can make an early message finish after a later one would.
    """

    def __init__(self, analysis="**1. Summary**\nok", fail=False, empty=False, delays=None):
        self.analysis = analysis
        self.fail = fail
        self.empty = empty
        self.delays = delays or {}
        self.prompts: list[str] = []
        self.chat_calls: list[tuple] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationError("model offline")
        return "" if self.empty else self.analysis

    async def chat(self, system_instruction, history, message) -> str:
        self.chat_calls.append((system_instruction, list(history), message))
        await asyncio.sleep(self.delays.get(message, 0))
        if self.fail:
            raise GenerationError("model offline")
        return "" if self.empty else f"reply to {message}"


class StubArticleSource:
    """ArticleSourcePort double. Calls for months listed in `gates` block
    until the matching asyncio.Event is set."""

    def __init__(self, result: FetchResult, gates=None):
        self.result = result
        self.gates = gates or {}
        self.calls: list[int] = []

    async def fetch(self, months: int) -> FetchResult:
        self.calls.append(months)
        gate = self.gates.get(months)
        if gate is not None:
            await gate.wait()
        return self.result

    async def search(self, months: int):
        result = await self.fetch(months)
        return list(result.items) if result.ok else self.samples()

    def samples(self):
        return [sample_article("sample-1", "Sample article")]


class StubTrialSource:
    def __init__(self, trials=None):
        self.trials = trials or []

    async def list_trials(self):
        return list(self.trials)


def ok_result(*articles) -> FetchResult:
    return FetchResult(FetchStatus.OK, items=list(articles))
