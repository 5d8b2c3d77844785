"""In-memory store for extracted inventory records."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from models.inventory_models import (
	MISSING_PLACEHOLDER,
	SOURCE_IMAGE_FIELD,
	PendingEdit,
	Record,
	blank_fields,
)

LOGGER = logging.getLogger(__name__)


class RecordStore:
	"""Hold the ordered records, derive their columns, and manage the single pending edit.

	Records are addressed by position. Operations given a position that no
	longer exists leave the store unchanged and return False.
	"""

	def __init__(self) -> None:
		self._records: List[Record] = []
		self._pending: Optional[PendingEdit] = None

	def __len__(self) -> int:
		return len(self._records)

	def _in_range(self, index: int) -> bool:
		return 0 <= index < len(self._records)

	def records(self) -> List[Record]:
		"""Return a shallow snapshot of the current records."""
		return list(self._records)

	def get(self, index: int) -> Optional[Record]:
		"""Return the record at a position, or None if it does not exist."""
		return self._records[index] if self._in_range(index) else None

	@property
	def pending_edit(self) -> Optional[PendingEdit]:
		return self._pending

	def append(self, record: Record) -> None:
		"""Add a record at the tail."""
		fields = {str(key): str(value) for key, value in record.fields.items() if key != SOURCE_IMAGE_FIELD}
		self._records.append(Record(fields=fields, source_image_id=record.source_image_id))

	def append_blank(self) -> Record:
		"""Append a record holding the canonical fields, all empty."""
		record = Record(fields=blank_fields())
		self._records.append(record)
		return record

	def append_manual(self, name: str) -> Record:
		"""Append a canonical record pre-filled with a chemical name."""
		record = Record(fields=blank_fields(name))
		self._records.append(record)
		return record

	def remove_at(self, index: int) -> bool:
		"""Remove the record at a position; a stale position is ignored."""
		if not self._in_range(index):
			LOGGER.debug("Ignoring removal of stale record index %s", index)
			return False
		del self._records[index]
		return True

	def remove_by_source(self, image_id: str) -> int:
		"""Remove every record extracted from the given image and return the count."""
		kept = [record for record in self._records if record.source_image_id != image_id]
		removed = len(self._records) - len(kept)
		self._records = kept
		return removed

	def begin_edit(self, index: int) -> bool:
		"""Start editing a record, discarding any earlier uncommitted edit."""
		if not self._in_range(index):
			LOGGER.debug("Ignoring edit of stale record index %s", index)
			return False
		self._pending = PendingEdit(index=index, fields=dict(self._records[index].fields))
		return True

	def update_edit_field(self, field_name: str, value: str) -> bool:
		"""Change one field of the scratch copy."""
		if self._pending is None:
			return False
		self._pending.fields[str(field_name)] = "" if value is None else str(value)
		return True

	def commit_edit(self) -> bool:
		"""Write the scratch copy back to the position captured at begin time."""
		pending, self._pending = self._pending, None
		if pending is None:
			return False
		if not self._in_range(pending.index):
			LOGGER.debug("Dropping edit for stale record index %s", pending.index)
			return False
		current = self._records[pending.index]
		self._records[pending.index] = Record(fields=dict(pending.fields), source_image_id=current.source_image_id)
		return True

	def cancel_edit(self) -> None:
		"""Discard the scratch copy."""
		self._pending = None

	def columns(self) -> List[str]:
		"""Return the union of field names in first-seen order."""
		seen: Dict[str, None] = {}
		for record in self._records:
			for key in record.fields:
				if key != SOURCE_IMAGE_FIELD:
					seen.setdefault(key, None)
		return list(seen)

	def rows(self, columns: Optional[List[str]] = None) -> List[Dict[str, str]]:
		"""Return every record as a full row over the column set."""
		columns = self.columns() if columns is None else columns
		return [{column: record.fields.get(column, MISSING_PLACEHOLDER) for column in columns} for record in self._records]

	def replace_fields(self, index: int, fields: Mapping[str, str]) -> bool:
		"""Run a whole edit cycle for one record in a single step."""
		if not self.begin_edit(index):
			return False
		for key, value in fields.items():
			self.update_edit_field(key, value)
		return self.commit_edit()

	def clear(self) -> None:
		"""Drop all records and any pending edit."""
		self._records = []
		self._pending = None
