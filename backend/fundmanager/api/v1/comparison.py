"""Company comparison API endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from fundmanager.services.company_comparison_service import CompanyComparisonService
from fundmanager.services.providers import get_financial_data_provider, get_language_model

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/company-comparison")
async def company_comparison(
    base_company: Optional[str] = Query(None, description="Company to compare, e.g. Shell"),
):
    """
    Compare a company with similar companies on 2024 free cash flow, market
    cap, sector and carbon emissions, citing the search results used.

    Rows use display column names ("Company", "Market Cap (2024)", ...).
    """
    if base_company is None or not base_company.strip():
        raise HTTPException(status_code=400, detail="Missing base_company query parameter")

    service = CompanyComparisonService(
        data_provider=get_financial_data_provider(),
        language_model=get_language_model(),
    )
    report = await service.run_comparison(base_company.strip())
    return report.model_dump(by_alias=True)
