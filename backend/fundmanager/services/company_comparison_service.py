"""
Company comparison pipeline.

Stage A asks the language model for companies similar to a base company.
Stage B, one company at a time: run a financial and a carbon search in
parallel, number the hits as sources and ask the language model to extract
one structured row citing those sources.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fundmanager.config import settings
from fundmanager.core.exceptions import MalformedResponseError
from fundmanager.schemas.comparison import (
    NOT_AVAILABLE,
    CompanyComparisonRow,
    ComparisonReport,
)
from fundmanager.services.json_extraction import extract_json_from_text
from fundmanager.services.providers import (
    FinancialDataProvider,
    LanguageModel,
    SearchResponse,
    get_financial_data_provider,
    get_language_model,
)

logger = logging.getLogger(__name__)

FINANCIAL_SOURCES = [
    "valyu/valyu-cash-flow-US",
    "valyu/valyu-earnings-US",
    "valyu/valyu-income-statement-US",
    "valyu/valyu-statistics-US",
]
SEARCH_MAX_RESULTS = 10
SEARCH_RELEVANCE_THRESHOLD = 0.3

SOURCE_CONTENT_CHARS = 1000
EXCERPT_CHARS = 300

SIMILAR_MAX_TOKENS = 1024
SIMILAR_TEMPERATURE = 0.3
EXTRACTION_MAX_TOKENS = 2048
EXTRACTION_TEMPERATURE = 0.1

FINANCIAL = "financial"
CARBON = "carbon"


@dataclass
class SourceEntry:
    """A numbered search hit the model can cite by id."""

    title: str
    url: str
    content: str
    type: str  # 'financial' or 'carbon'


def build_similar_companies_prompt(base_company: str, num_companies: int) -> str:
    example = ", ".join(f'"Company {i}"' for i in range(1, num_companies + 1))
    return f"""
List {num_companies} companies that are most similar to {base_company} in terms of:
- Industry/sector
- Business model
- Market size
- Geographic presence

Return ONLY a JSON array of company names, nothing else.
Format: [{example}]

Do not include {base_company} itself in the list.
"""


def build_source_map(financial: SearchResponse, carbon: SearchResponse) -> Dict[int, SourceEntry]:
    """Number search hits from 1, financial hits first, then carbon hits."""
    sources: Dict[int, SourceEntry] = {}
    idx = 1
    for source_type, response in ((FINANCIAL, financial), (CARBON, carbon)):
        for result in response.results:
            sources[idx] = SourceEntry(
                title=result.title if result.title is not None else "Unknown",
                url=result.url if result.url is not None else NOT_AVAILABLE,
                content=(result.content or result.description or "")[:SOURCE_CONTENT_CHARS],
                type=source_type,
            )
            idx += 1
    return sources


def _format_sources(sources: Dict[int, SourceEntry], source_type: str) -> str:
    return "\n".join(
        f"[{i}] {s.title}\n    URL: {s.url}\n    Excerpt: {s.content[:EXCERPT_CHARS]}..."
        for i, s in sources.items()
        if s.type == source_type
    )


def _dump_response(response: SearchResponse) -> str:
    return json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False)


def build_extraction_prompt(
    company: str,
    financial: SearchResponse,
    carbon: SearchResponse,
    sources: Dict[int, SourceEntry],
) -> str:
    return f"""
Extract financial and environmental data for {company} from two sets of search results.

REQUIRED JSON FORMAT (return ONLY this, no explanation):
{{
  "company": "{company}",
  "free_cash_flow_2024": "Value with currency (e.g., $5.2B, €3.1B) or N/A, just the integer value",
  "market_cap_2024": "Value with currency (e.g., $200B) or N/A, just the integer value",
  "sector": "Sector name or N/A",
  "carbon_emissions_2024": "Value in MtCO2e (e.g., 456 MtCO2e) or N/A, just the integer value",
  "source_ids": [1, 3, 5, 12]
}}

RULES:
1. All values for 2024 specifically. If 2024 data not found, use "N/A".
2. Free cash flow and market cap include currency symbol.
3. Carbon emissions in MtCO2e units (1 GtCO2e = 1000 MtCO2e).
4. source_ids = array of all sources used.
5. Return ONLY valid JSON, no markdown.

FINANCIAL DATA SOURCES:
{_format_sources(sources, FINANCIAL)}

CARBON EMISSIONS SOURCES:
{_format_sources(sources, CARBON)}

FULL FINANCIAL RESULTS (JSON):
{_dump_response(financial)}

FULL CARBON RESULTS (JSON):
{_dump_response(carbon)}

Extract the data now:
"""


def _text_or_na(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    return value if isinstance(value, str) else str(value)


def _resolve_source_ids(raw_ids: Any, sources: Dict[int, SourceEntry]) -> List[SourceEntry]:
    """Map cited ids to sources; ids that are not in the map are ignored."""
    if not isinstance(raw_ids, list):
        return []
    cited: List[SourceEntry] = []
    for raw_id in raw_ids:
        try:
            source = sources.get(int(raw_id))
        except (TypeError, ValueError):
            continue
        if source is not None:
            cited.append(source)
    return cited


def build_row(company: str, extracted: Dict[str, Any], sources: Dict[int, SourceEntry]) -> CompanyComparisonRow:
    cited = _resolve_source_ids(extracted.get("source_ids"), sources)
    return CompanyComparisonRow(
        company=_text_or_na(extracted.get("company") or company),
        free_cash_flow_2024=_text_or_na(extracted.get("free_cash_flow_2024")),
        market_cap_2024=_text_or_na(extracted.get("market_cap_2024")),
        sector=_text_or_na(extracted.get("sector")),
        carbon_emissions_2024=_text_or_na(extracted.get("carbon_emissions_2024")),
        source_titles="; ".join(s.title for s in cited) if cited else NOT_AVAILABLE,
        source_urls="; ".join(s.url for s in cited) if cited else NOT_AVAILABLE,
    )


class CompanyComparisonService:
    """Builds a sourced financial/carbon comparison table for a company and its peers."""

    def __init__(
        self,
        data_provider: Optional[FinancialDataProvider] = None,
        language_model: Optional[LanguageModel] = None,
        num_similar: Optional[int] = None,
        pacing_seconds: Optional[float] = None,
    ):
        self.data_provider = data_provider or get_financial_data_provider()
        self.language_model = language_model or get_language_model()
        self.num_similar = num_similar if num_similar is not None else settings.COMPARISON_SIMILAR_COMPANIES
        self.pacing_seconds = (
            pacing_seconds if pacing_seconds is not None else settings.COMPARISON_PACING_SECONDS
        )

    async def get_similar_companies(self, base_company: str) -> List[str]:
        """
        Ask the model for similar companies; the base company is returned first.

        Raises:
            MalformedResponseError: If the response is not a JSON array.
        """
        prompt = build_similar_companies_prompt(base_company, self.num_similar)
        text = await self.language_model.complete(
            prompt, max_tokens=SIMILAR_MAX_TOKENS, temperature=SIMILAR_TEMPERATURE
        )
        companies = extract_json_from_text(text)
        if not isinstance(companies, list):
            raise MalformedResponseError("Similar companies response is not a JSON array")

        names = [str(c).strip() for c in companies if c is not None and str(c).strip()]
        return [base_company] + names

    async def search_company_data(self, company: str) -> tuple[SearchResponse, SearchResponse]:
        """Run the financial and carbon searches for a company concurrently."""
        financial_query = f"{company} free cash flow 2024 market capitalization 2024 sector"
        carbon_query = f"{company} carbon emissions MtCO2e 2024 scope 1 scope 2 scope 3"

        financial, carbon = await asyncio.gather(
            self.data_provider.search(
                financial_query,
                included_sources=FINANCIAL_SOURCES,
                max_num_results=SEARCH_MAX_RESULTS,
                relevance_threshold=SEARCH_RELEVANCE_THRESHOLD,
            ),
            self.data_provider.search(
                carbon_query,
                max_num_results=SEARCH_MAX_RESULTS,
                relevance_threshold=SEARCH_RELEVANCE_THRESHOLD,
            ),
        )
        return financial, carbon

    async def extract_company_data(
        self, company: str, financial: SearchResponse, carbon: SearchResponse
    ) -> CompanyComparisonRow:
        """
        Extract one comparison row from the search responses.

        Raises:
            MalformedResponseError: If the model response is not a JSON object.
        """
        sources = build_source_map(financial, carbon)
        prompt = build_extraction_prompt(company, financial, carbon, sources)
        text = await self.language_model.complete(
            prompt, max_tokens=EXTRACTION_MAX_TOKENS, temperature=EXTRACTION_TEMPERATURE
        )
        extracted = extract_json_from_text(text)
        if not isinstance(extracted, dict):
            raise MalformedResponseError("Extraction response is not a JSON object")
        return build_row(company, extracted, sources)

    async def run_comparison(self, base_company: str) -> ComparisonReport:
        """
        Compare a base company with similar companies.

        A failure for one company yields an error row for it; the rest of the
        batch still runs. Rows follow the order of the similar-companies list.
        An unparseable similar-companies response leaves only the base company.
        """
        try:
            companies = await self.get_similar_companies(base_company)
        except MalformedResponseError as e:
            logger.warning(f"Similar companies for {base_company} unavailable, comparing it alone: {e}")
            companies = [base_company]

        logger.info(
            "comparison_started",
            extra={"base_company": base_company, "similar_count": len(companies) - 1},
        )

        rows: List[CompanyComparisonRow] = []
        for position, company in enumerate(companies):
            if position > 0 and self.pacing_seconds > 0:
                await asyncio.sleep(self.pacing_seconds)
            try:
                financial, carbon = await self.search_company_data(company)
                rows.append(await self.extract_company_data(company, financial, carbon))
            except Exception as e:
                logger.error(f"Comparison row failed for {company}: {e}", exc_info=True)
                rows.append(CompanyComparisonRow.error_row(company))

        return ComparisonReport(base_company=base_company, rows=rows)
