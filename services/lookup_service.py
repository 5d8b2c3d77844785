"""Single chemical lookup by CAS number or name, without an image."""

import logging

from models.inventory_models import LookupMode, Record
from services.extraction.extraction_client import ExtractionClient, TransportError
from services.extraction.prompts import build_lookup_prompt
from services.extraction.response_parser import ParseError, parse_record
from services.record_store import RecordStore

LOGGER = logging.getLogger(__name__)


class LookupNotFound(Exception):
    """The model could not resolve a lookup query into a record."""

    def __init__(self, query: str, mode: LookupMode) -> None:
        super().__init__(f"Chemical not found for {mode.value} query '{query}'")
        self.query = query
        self.mode = mode


class LookupService:
    """Resolve one chemical identity into a record and add it to the store."""

    def __init__(self, client: ExtractionClient, store: RecordStore) -> None:
        if client is None:
            raise ValueError("Extraction client must be provided.")
        self.client = client
        self.store = store

    async def lookup(self, query: str, mode: LookupMode = LookupMode.BY_IDENTIFIER) -> Record:
        """Look up a chemical and append the result.

        Args:
            query: CAS number or chemical name.
            mode: How to interpret the query.

        Returns:
            The appended record.

        Raises:
            ValueError: If the query is blank.
            LookupNotFound: If the model call fails or its answer cannot be parsed.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("A CAS number or chemical name is required.")

        try:
            text = await self.client.complete_text(build_lookup_prompt(query, mode))
            fields = parse_record(text)
        except (TransportError, ParseError) as exc:
            LOGGER.warning("Lookup failed for %s '%s': %s", mode.value, query, exc)
            raise LookupNotFound(query, mode) from exc

        record = Record(fields=fields)
        self.store.append(record)
        return record

    def add_manual(self, query: str) -> Record:
        """Append a canonical record named after the query that could not be found."""
        return self.store.append_manual((query or "").strip())
