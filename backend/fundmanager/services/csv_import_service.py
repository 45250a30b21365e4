"""Service for parsing portfolio holdings from CSV files."""

import csv
import io
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

from fundmanager.core.exceptions import PortfolioValidationError


class CSVImportService:
    """Service for parsing holdings CSV uploads."""

    # Accepted column names, matched case-insensitively
    TICKER_COLUMNS = ["ticker", "symbol"]
    WEIGHT_COLUMNS = ["weight_pct", "weight", "weight (%)"]

    @staticmethod
    def _detect_column_mapping(headers: List[str]) -> Dict[str, Optional[str]]:
        """
        Auto-detect column mapping from CSV headers.

        Returns:
            Dict mapping canonical names (ticker, weight) to actual column names
        """
        headers_lower = {h.strip().lower(): h for h in headers if h is not None}

        mapping: Dict[str, Optional[str]] = {"ticker": None, "weight": None}

        for col in CSVImportService.TICKER_COLUMNS:
            if col in headers_lower:
                mapping["ticker"] = headers_lower[col]
                break

        for col in CSVImportService.WEIGHT_COLUMNS:
            if col in headers_lower:
                mapping["weight"] = headers_lower[col]
                break

        return mapping

    @staticmethod
    def _parse_weight(weight_str: str) -> Optional[Decimal]:
        """Parse a weight such as "40", "40.5" or "40%"."""
        cleaned = (weight_str or "").strip().replace("%", "").strip()
        if not cleaned:
            return None
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return None

    @staticmethod
    def parse_holdings(csv_content: str) -> List[Tuple[str, Decimal]]:
        """
        Parse (ticker, weight_pct) rows from CSV text.

        Blank lines are skipped, tickers upper-cased.

        Raises:
            PortfolioValidationError: If a required column is missing, a weight
                cannot be parsed, or no rows are found
        """
        reader = csv.DictReader(io.StringIO(csv_content.lstrip("\ufeff")))
        headers = reader.fieldnames or []
        mapping = CSVImportService._detect_column_mapping(headers)

        if mapping["ticker"] is None or mapping["weight"] is None:
            raise PortfolioValidationError(
                "CSV must have a ticker (or symbol) column and a weight_pct (or weight) column"
            )

        rows: List[Tuple[str, Decimal]] = []
        for row in reader:
            line_number = reader.line_num
            ticker = (row.get(mapping["ticker"]) or "").strip().upper()
            raw_weight = row.get(mapping["weight"]) or ""

            if not ticker and not raw_weight.strip():
                continue
            if not ticker:
                raise PortfolioValidationError(f"Missing ticker on line {line_number}")

            weight = CSVImportService._parse_weight(raw_weight)
            if weight is None:
                raise PortfolioValidationError(
                    f"Invalid weight {raw_weight!r} for {ticker} on line {line_number}"
                )
            rows.append((ticker, weight))

        if not rows:
            raise PortfolioValidationError("CSV contains no holdings")

        return rows


csv_import_service = CSVImportService()
