"""
infrastructure.providers.fda_drugs - Curated FDA-approved DMD therapies.

Implements DrugSourcePort. There is no network call: the table below is the
whole data source. list_drugs() stays async so callers treat all three
content providers the same way.
"""

from __future__ import annotations

import logging

from domain.models import Drug

logger = logging.getLogger(__name__)

_FDA = "https://www.fda.gov"

DMD_DRUGS: tuple[Drug, ...] = (
    Drug(
        brand_name="Elevidys",
        brand_name_cn="依力维迪",
        generic_name="delandistrogene moxeparvovec-rokl",
        generic_name_cn="德兰替隆基因",
        manufacturer="Sarepta Therapeutics",
        approval_date="2023-06",
        approval_year="2023",
        indication=(
            "Gene therapy for patients aged 4 years and older with DMD and a "
            "confirmed mutation in the DMD gene (label expanded in June 2024 "
            "to include non-ambulatory patients)."
        ),
        dosage="Single intravenous infusion of 1.33 x 10^14 vector genomes per kg.",
        label_url=f"{_FDA}/vaccines-blood-biologics/elevidys",
    ),
    Drug(
        brand_name="Duvyzat",
        brand_name_cn="杜微扎特",
        generic_name="givinostat",
        generic_name_cn="吉维诺他",
        manufacturer="Italfarmaco",
        approval_date="2024-03",
        approval_year="2024",
        indication=(
            "For patients with DMD aged 6 years and older. First approved "
            "non-steroidal histone deacetylase (HDAC) inhibitor."
        ),
        dosage="Oral suspension twice daily with food; dose based on body weight.",
        label_url=(
            f"{_FDA}/drugs/drug-approvals-and-databases/"
            "fda-approves-non-steroidal-treatment-duchenne-muscular-dystrophy"
        ),
    ),
    Drug(
        brand_name="Agamree",
        brand_name_cn="阿加瑞",
        generic_name="vamorolone",
        generic_name_cn="瓦莫洛隆",
        manufacturer="Santhera Pharmaceuticals",
        approval_date="2023-10",
        approval_year="2023",
        indication=(
            "For patients with DMD aged 2 years and older. Designed to reduce "
            "the side effects of traditional corticosteroids."
        ),
        dosage="Oral, once daily; recommended dose 6 mg/kg/day.",
        label_url=(
            f"{_FDA}/drugs/resources-information-approved-drugs/"
            "fda-approves-vamorolone-duchenne-muscular-dystrophy"
        ),
    ),
    Drug(
        brand_name="Exondys 51",
        brand_name_cn="埃特利森",
        generic_name="eteplirsen",
        manufacturer="Sarepta Therapeutics",
        approval_date="2016-09",
        approval_year="2016",
        indication=(
            "First approved exon-skipping drug; for DMD patients with a "
            "confirmed mutation amenable to exon 51 skipping."
        ),
        dosage="30 mg/kg intravenous infusion once weekly.",
        label_url=(
            f"{_FDA}/news-events/press-announcements/"
            "fda-grants-accelerated-approval-first-drug-duchenne-muscular-dystrophy"
        ),
    ),
    Drug(
        brand_name="Vyondys 53",
        brand_name_cn="维昂迪斯 53",
        generic_name="golodirsen",
        manufacturer="Sarepta Therapeutics",
        approval_date="2019-12",
        approval_year="2019",
        indication="For DMD patients with a confirmed mutation amenable to exon 53 skipping.",
        dosage="30 mg/kg intravenous infusion once weekly.",
        label_url=_FDA,
    ),
    Drug(
        brand_name="Viltepso",
        brand_name_cn="维特普索",
        generic_name="viltolarsen",
        manufacturer="NS Pharma",
        approval_date="2020-08",
        approval_year="2020",
        indication="For DMD patients with a confirmed mutation amenable to exon 53 skipping.",
        dosage="80 mg/kg intravenous infusion once weekly.",
        label_url=_FDA,
    ),
    Drug(
        brand_name="Amondys 45",
        generic_name="casimersen",
        manufacturer="Sarepta Therapeutics",
        approval_date="2021-02",
        approval_year="2021",
        indication="For DMD patients with a confirmed mutation amenable to exon 45 skipping.",
        dosage="30 mg/kg intravenous infusion once weekly.",
        label_url=_FDA,
    ),
    Drug(
        brand_name="Emflaza",
        brand_name_cn="恩氟扎",
        generic_name="deflazacort",
        manufacturer="PTC Therapeutics",
        approval_date="2017-02",
        approval_year="2017",
        indication="Corticosteroid for patients with DMD aged 2 years and older.",
        dosage="Oral, once daily; approximately 0.9 mg/kg/day.",
        label_url=_FDA,
    ),
)


class StaticDrugSource:
    """Serve the curated drug table."""

    def __init__(self, drugs: tuple[Drug, ...] = DMD_DRUGS):
        self._drugs = drugs

    async def list_drugs(self) -> list[Drug]:
        logger.debug("Serving %d curated drugs", len(self._drugs))
        return list(self._drugs)

    async def get(self, brand_name: str) -> Drug | None:
        """Case-insensitive lookup by brand name."""
        wanted = brand_name.strip().lower()
        for drug in self._drugs:
            if drug.brand_name.lower() == wanted:
                return drug
        return None
