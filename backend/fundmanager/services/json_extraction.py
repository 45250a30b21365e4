"""Parse JSON out of language-model response text."""

import json
import logging
from typing import Any

from fundmanager.core.exceptions import MalformedResponseError

logger = logging.getLogger(__name__)

JSON_FENCE = "```json"
FENCE = "```"


def _strip_fences(text: str) -> str:
    if JSON_FENCE in text:
        return text.split(JSON_FENCE, 1)[1].split(FENCE, 1)[0].strip()
    if FENCE in text:
        return text.split(FENCE, 2)[1].strip()
    return text.strip()


def extract_json_from_text(text: str) -> Any:
    """
    Parse the JSON payload of a model response.

    Handles ```json fenced blocks, bare ``` fenced blocks and unfenced text.

    Raises:
        MalformedResponseError: If the payload is not valid JSON.
    """
    payload = _strip_fences(text or "")
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Model response is not valid JSON: {e}; text={payload[:200]!r}")
        raise MalformedResponseError(f"Model response is not valid JSON: {e.msg}") from e
