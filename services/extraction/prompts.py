"""Prompt builders for label extraction and chemical lookup."""

import json
from typing import Iterable, Optional

from models.inventory_models import CANONICAL_FIELDS, LOOKUP_FIELDS, LookupMode

_EXTRACTION_FORMAT = json.dumps({name: "..." for name in CANONICAL_FIELDS})

DEFAULT_EXTRACTION_PROMPT = (
    "Please analyze this image of a chemical or product label and extract key information.\n"
    "Focus on identifying:\n"
    "- Chemical/Product Name (the primary name on the label)\n"
    "- CAS Number (if present)\n"
    "- Formula (chemical formula if present)\n"
    "- Concentration/Strength (if applicable)\n"
    "- Lot/Batch Number (if present)\n"
    "- Manufacturer (if visible)\n"
    "- Any other relevant identifiers\n"
    "\n"
    "Return the data as a JSON object containing all the information found.\n"
    f"Format: {_EXTRACTION_FORMAT}\n"
    "Only include fields where information is found. Only return valid JSON, no other text."
)


def resolve_instruction(custom_prompt: Optional[str]) -> str:
    """Return the user's instruction, or the default one when it is blank."""
    if custom_prompt and custom_prompt.strip():
        return custom_prompt.strip()
    return DEFAULT_EXTRACTION_PROMPT


def _format_template(fields: Iterable[str], known: dict) -> str:
    return json.dumps({name: known.get(name, "...") for name in fields}, ensure_ascii=False)


def build_lookup_prompt(query: str, mode: LookupMode) -> str:
    """Return the text-only prompt used to look up a single chemical."""
    if mode == LookupMode.BY_IDENTIFIER:
        template = _format_template(LOOKUP_FIELDS, {"CAS Number": query})
        lead = f"Look up the chemical with CAS number: {query}."
    else:
        template = _format_template(LOOKUP_FIELDS, {"Chemical Name": query})
        lead = f"Look up the chemical: {query}."
    return (
        f"{lead} Provide the following information in JSON format: {template}. "
        "Only return valid JSON, no other text."
    )
