"""Company comparison schemas."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

NOT_AVAILABLE = "N/A"


class CompanyComparisonRow(BaseModel):
    """
    One company's extracted financial and carbon figures.

    Serialized with display column names (by_alias); every field defaults to "N/A".
    """

    model_config = ConfigDict(populate_by_name=True)

    company: str = Field(NOT_AVAILABLE, alias="Company")
    free_cash_flow_2024: str = Field(NOT_AVAILABLE, alias="Free Cash Flow (2024)")
    market_cap_2024: str = Field(NOT_AVAILABLE, alias="Market Cap (2024)")
    sector: str = Field(NOT_AVAILABLE, alias="Sector")
    carbon_emissions_2024: str = Field(NOT_AVAILABLE, alias="Carbon Emissions (2024 MtCO2e)")
    source_titles: str = Field(NOT_AVAILABLE, alias="Sources (Title)")
    source_urls: str = Field(NOT_AVAILABLE, alias="Source URLs")

    @classmethod
    def error_row(cls, company: str) -> "CompanyComparisonRow":
        """Placeholder row for a company whose extraction failed."""
        return cls(company=company, source_titles="Error")


class ComparisonReport(BaseModel):
    base_company: str
    rows: List[CompanyComparisonRow]
