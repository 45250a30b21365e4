"""Timestamp helpers for model defaults and provenance records."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as an offset-naive datetime (TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_now_iso() -> str:
    """Current UTC time in ISO-8601 form, used in enrichment provenance."""
    return datetime.now(timezone.utc).isoformat()
