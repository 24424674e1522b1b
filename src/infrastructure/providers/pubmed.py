"""
infrastructure.providers.pubmed - PubMed E-utilities article source.

Implements ArticleSourcePort in two steps:

    1. esearch.fcgi (JSON)  - PMIDs for the disease term within a
                              publication-date window, newest first
    2. efetch.fcgi  (XML)   - full records for those PMIDs, parsed with
                              BeautifulSoup's XML parser

fetch() reports OK / EMPTY / FAILED so callers can tell "nothing new" from
"PubMed is down". search() is the feed contract: it never raises and never
returns an empty list; both EMPTY and FAILED fall back to the built-in
sample articles.

Uses requests via run_in_executor for async compat.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from datetime import date
from typing import Any, Optional

import requests
from bs4 import BeautifulSoup

from domain.models import Article, ArticleType, FetchResult, FetchStatus

logger = logging.getLogger(__name__)

PUBMED_ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"

FALLBACK_ARTICLES: tuple[Article, ...] = (
    Article(
        id="sample-1",
        title="Safety and Efficacy of Next-Gen Exon Skipping in Duchenne Muscular Dystrophy",
        abstract=(
            "BACKGROUND: Duchenne muscular dystrophy (DMD) is characterized by progressive "
            "muscle weakness. METHODS: This Phase 3 trial evaluated the safety of a new "
            "antisense oligonucleotide. RESULTS: Participants showed statistically significant "
            "improvement in dystrophin production compared to placebo. 6-minute walk test "
            "stabilized. CONCLUSIONS: The therapy appears safe and effective for patients with "
            "exon 51 skipping amenable mutations."
        ),
        authors=["Smith J", "Doe A", "Gupta R"],
        publication_date="2024-05-15",
        journal="New England Journal of Medicine",
        url="https://pubmed.ncbi.nlm.nih.gov/",
        tags=[ArticleType.CLINICAL_TRIAL],
    ),
    Article(
        id="sample-2",
        title="Cardiac Management Standards in Duchenne: A Consensus Statement",
        abstract=(
            "Cardiomyopathy is a leading cause of mortality in DMD. This systematic review "
            "updates the 2018 guidelines. We recommend starting ACE inhibitors earlier in the "
            "disease course, prior to onset of left ventricular dysfunction. Regular MRI "
            "monitoring is suggested annually starting at age 10."
        ),
        authors=["Heart Working Group", "Miller T"],
        publication_date="2024-04-20",
        journal="The Lancet Neurology",
        url="https://pubmed.ncbi.nlm.nih.gov/",
        tags=[ArticleType.GUIDELINE],
    ),
    Article(
        id="sample-3",
        title="AAV Micro-dystrophin Gene Therapy: 5 Year Follow-up",
        abstract=(
            "Long term data from the initial cohort of gene therapy recipients. We observed "
            "sustained expression of micro-dystrophin in skeletal muscle, though viral load "
            "shedding has ceased. Functional outcomes remain stable in 60% of the cohort."
        ),
        authors=["Chen L", "Weiss P"],
        publication_date="2024-06-01",
        journal="Nature Medicine",
        url="https://pubmed.ncbi.nlm.nih.gov/",
        tags=[ArticleType.RESEARCH],
    ),
)


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------

def months_before(day: date, months: int) -> date:
    """Same calendar day `months` months earlier, clamped to the month's end."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def build_search_term(disease_term: str, months: int, today: Optional[date] = None) -> str:
    """PubMed query restricted to the disease and a publication-date window."""
    end = today or date.today()
    start = months_before(end, months)
    short_name = disease_term.split()[0]
    window = (
        f'"{start:%Y/%m/%d}"[Date - Publication] : '
        f'"{end:%Y/%m/%d}"[Date - Publication]'
    )
    return (
        f'("{disease_term}"[MeSH Terms] OR "{short_name}"[All Fields]) '
        f"AND ({window})"
    )


# ---------------------------------------------------------------------------
# XML parsing
# ---------------------------------------------------------------------------

def classify_article(publication_types: list[str], title: str) -> ArticleType:
    """Pick exactly one tag: clinical trial > review > guideline > research."""
    types = [t.lower() for t in publication_types]
    title_lower = title.lower()

    if any("clinical trial" in t for t in types) or "trial" in title_lower or "phase" in title_lower:
        return ArticleType.CLINICAL_TRIAL
    if any("review" in t for t in types) or "review" in title_lower:
        return ArticleType.REVIEW
    if any("guideline" in t or "consensus" in t for t in types) or "guideline" in title_lower:
        return ArticleType.GUIDELINE
    return ArticleType.RESEARCH


def _squash(text: str) -> str:
    # Inline markup (<i>, <sup>) splits text nodes; keep their spacing as written.
    return " ".join(text.split())


def _text(parent: Any, name: str) -> str:
    if parent is None:
        return ""
    tag = parent.find(name)
    return _squash(tag.get_text()) if tag else ""


def _abstract(article_tag: Any) -> str:
    abstract_tag = article_tag.find("Abstract")
    if abstract_tag is None:
        return ""
    parts = []
    for section in abstract_tag.find_all("AbstractText"):
        label = section.get("Label")
        text = _squash(section.get_text())
        if label and label != "UNLABELLED":
            parts.append(f"{label}: {text}")
        else:
            parts.append(text)
    return "\n\n".join(parts).strip()


def _authors(article_tag: Any) -> list[str]:
    author_list = article_tag.find("AuthorList")
    if author_list is None:
        return []
    authors = []
    for author in author_list.find_all("Author"):
        last = _text(author, "LastName")
        if last:
            authors.append(f"{last} {_text(author, 'Initials')}".strip())
    return authors


def _publication_date(article_tag: Any) -> str:
    pub_date = article_tag.find("PubDate")
    if pub_date is None:
        return "Unknown Date"
    medline_date = _text(pub_date, "MedlineDate")
    if medline_date:
        return medline_date
    parts = [_text(pub_date, "Year"), _text(pub_date, "Month"), _text(pub_date, "Day")]
    return "-".join(p for p in parts if p) or "Unknown Date"


def parse_article(pubmed_article: Any) -> Article:
    """Turn one <PubmedArticle> element into an Article.

    Raises ValueError when the record has no PMID or no Article element.
    """
    medline = pubmed_article.find("MedlineCitation")
    if medline is None:
        raise ValueError("record has no MedlineCitation")
    pmid = _text(medline, "PMID")
    article_tag = medline.find("Article")
    if not pmid or article_tag is None:
        raise ValueError("record has no PMID or Article element")

    title = _text(article_tag, "ArticleTitle")
    journal_tag = article_tag.find("Journal")
    journal = _text(journal_tag, "Title") or _text(journal_tag, "ISOAbbreviation")
    type_list = article_tag.find("PublicationTypeList")
    publication_types = (
        [t.get_text(strip=True) for t in type_list.find_all("PublicationType")]
        if type_list else []
    )

    return Article(
        id=pmid,
        title=title,
        abstract=_abstract(article_tag) or "No abstract available.",
        authors=_authors(article_tag),
        publication_date=_publication_date(article_tag),
        journal=journal,
        url=PUBMED_ARTICLE_URL.format(pmid=pmid),
        tags=[classify_article(publication_types, title)],
    )


def parse_efetch_xml(xml_text: str) -> list[Article]:
    """Parse an efetch response. Unparseable records are skipped."""
    soup = BeautifulSoup(xml_text, "xml")
    articles = []
    for record in soup.find_all("PubmedArticle"):
        try:
            articles.append(parse_article(record))
        except ValueError as e:
            logger.warning("Skipping unparseable PubMed record: %s", e)
    return articles


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class PubMedArticleSource:
    """Fetch recent disease articles from PubMed.

    Implements ArticleSourcePort (structural typing, no explicit inheritance).
    """

    def __init__(
        self,
        base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils",
        disease_term: str = "Duchenne Muscular Dystrophy",
        max_results: int = 15,
        api_key: str = "",
        email: str = "",
        tool: str = "DMDCompanion",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._disease_term = disease_term
        self._max_results = max_results
        self._api_key = api_key
        self._email = email
        self._tool = tool
        self._timeout = timeout
        self._http = session or requests.Session()

    def _common_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"db": "pubmed", "tool": self._tool}
        if self._email:
            params["email"] = self._email
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    def _search_ids(self, months: int) -> list[str]:
        params = {
            **self._common_params(),
            "term": build_search_term(self._disease_term, months),
            "retmode": "json",
            "retmax": self._max_results,
            "sort": "date",
        }
        response = self._http.get(
            f"{self._base_url}/esearch.fcgi", params=params, timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json().get("esearchresult", {}).get("idlist", [])

    def _fetch_records(self, pmids: list[str]) -> str:
        params = {
            **self._common_params(),
            "id": ",".join(pmids),
            "retmode": "xml",
        }
        response = self._http.get(
            f"{self._base_url}/efetch.fcgi", params=params, timeout=self._timeout,
        )
        response.raise_for_status()
        return response.text

    def _fetch_sync(self, months: int) -> FetchResult:
        try:
            pmids = self._search_ids(months)
            if not pmids:
                logger.info("PubMed returned no ids for the last %d month(s)", months)
                return FetchResult(FetchStatus.EMPTY, reason="no matching articles")

            articles = parse_efetch_xml(self._fetch_records(pmids))
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("PubMed request failed: %s", e)
            return FetchResult(FetchStatus.FAILED, reason=str(e))

        if not articles:
            return FetchResult(FetchStatus.EMPTY, reason="no parseable records")

        logger.info("Fetched %d PubMed article(s) for the last %d month(s)", len(articles), months)
        return FetchResult(FetchStatus.OK, items=articles)

    async def fetch(self, months: int) -> FetchResult:
        """Fetch articles published in the last `months` months."""
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, self._fetch_sync, months)
        except Exception as e:
            logger.exception("Unexpected PubMed failure")
            return FetchResult(FetchStatus.FAILED, reason=str(e))

    def samples(self) -> list[Article]:
        """Built-in articles shown when PubMed has nothing to offer."""
        return list(FALLBACK_ARTICLES)

    async def search(self, months: int) -> list[Article]:
        """Feed contract: real articles, or the built-in samples."""
        result = await self.fetch(months)
        if result.ok:
            return list(result.items)
        logger.info("Using fallback articles (%s: %s)", result.status.value, result.reason)
        return self.samples()
