# backend/utils/gemini.py
import base64
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from config import settings
from schemas.inventory import ExtractedItem
from utils.errors import ExtractionError

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Warehouse - General"

PROMPT_TEMPLATE = """
You are an expert at analyzing invoices and receipts. Examine this document and extract information for ALL items listed.

Extract these fields for EACH item:
- name: the item/product name (specific and concise)
- category: {category_instructions}
- quantity: quantity purchased ("Qty", "Quantity"); 1 if not found
- minStock: minimum stock level if mentioned, otherwise 5
- supplier: supplier/vendor name, usually at the top and the same for all items
- model: model number, SKU or product code if visible
- serialNumber: serial number(s) ("Serial", "S/N"); separate several with commas
- warranty: warranty period, e.g. "3 Years" or "12 Months"
- location: storage location if mentioned, otherwise ""
- description: a brief description combining the invoice details

Return ONLY a valid JSON array with one object per item, no markdown and no explanations.
"""


def match_category(raw: Optional[str], known_categories: Sequence[str]) -> str:
    """Map a free-text category onto a known category name, or "" when nothing fits."""
    if not raw:
        return ""
    wanted = raw.strip()
    if wanted in known_categories:
        return wanted
    lowered = wanted.lower()
    for name in known_categories:
        if name.strip().lower() == lowered:
            return name
    return ""


def _strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def _as_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def normalize_extracted(raw: Dict[str, Any], known_categories: Sequence[str]) -> ExtractedItem:
    return ExtractedItem(
        name=str(raw.get("name") or ""),
        category=match_category(raw.get("category"), known_categories),
        quantity=_as_int(raw.get("quantity"), 1),
        min_stock=_as_int(raw.get("minStock"), 5),
        supplier=str(raw.get("supplier") or ""),
        model=str(raw.get("model") or ""),
        serial_number=str(raw.get("serialNumber") or ""),
        warranty=str(raw.get("warranty") or ""),
        location=str(raw.get("location") or DEFAULT_LOCATION),
        description=str(raw.get("description") or ""),
    )


def parse_model_output(text: str, known_categories: Sequence[str]) -> List[ExtractedItem]:
    try:
        data = json.loads(_strip_code_fences(text))
    except json.JSONDecodeError:
        logger.warning("Extraction output is not valid JSON: %s", text[:500])
        return [ExtractedItem(location=DEFAULT_LOCATION, description="Failed to extract data from invoice")]

    # A single object is accepted as a one-item list
    rows = data if isinstance(data, list) else [data]
    return [normalize_extracted(row, known_categories) for row in rows if isinstance(row, dict)]


class GeminiExtractor:
    def __init__(self):
        self.api_url = settings.GEMINI_API_URL
        self.api_key = settings.GEMINI_API_KEY
        self.model = settings.GEMINI_MODEL

    def _prompt(self, known_categories: Sequence[str]) -> str:
        if known_categories:
            instructions = (
                f"Available categories in the system: {', '.join(known_categories)}. "
                "Choose the MOST APPROPRIATE category from this list."
            )
        else:
            instructions = "infer the most appropriate category."
        return PROMPT_TEMPLATE.format(category_instructions=instructions)

    async def extract_structured_fields(
        self, data: bytes, mime_type: str, known_categories: Sequence[str]
    ) -> List[ExtractedItem]:
        if not self.api_key:
            raise ExtractionError("Invoice extraction is not configured (GEMINI_API_KEY missing)")

        url = f"{self.api_url.rstrip('/')}/v1beta/models/{self.model}:generateContent"
        body = {
            "contents": [{
                "parts": [
                    {"text": self._prompt(known_categories)},
                    {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(data).decode("ascii")}},
                ]
            }]
        }
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        async with httpx.AsyncClient(timeout=60.0) as client:
            try:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error("Gemini extraction request failed: %s", e)
                raise ExtractionError(f"Failed to process invoice with Gemini API: {e}") from e

        try:
            parts = payload["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts)
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected Gemini response shape: %s", str(payload)[:500])
            raise ExtractionError("Gemini API returned no content") from e

        return parse_model_output(text, known_categories)


gemini_extractor = GeminiExtractor()


def get_extractor() -> GeminiExtractor:
    return gemini_extractor
