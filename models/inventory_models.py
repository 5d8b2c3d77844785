"""Inventory domain models for label extraction workflows."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

SOURCE_IMAGE_FIELD = "imageId"
MISSING_PLACEHOLDER = ""

CANONICAL_FIELDS = (
	"Chemical Name",
	"CAS Number",
	"Formula",
	"Concentration",
	"Lot Number",
	"Manufacturer",
)

LOOKUP_FIELDS = (
	"Chemical Name",
	"CAS Number",
	"Formula",
	"Molecular Weight",
	"Common Uses",
)

NAME_FIELD = CANONICAL_FIELDS[0]


class ImageStatus(str, Enum):
	"""Extraction state of an uploaded label image."""

	PENDING = "pending"
	PROCESSING = "processing"
	EXTRACTED = "extracted"
	FAILED = "failed"


class SessionMode(str, Enum):
	"""Foreground activity of the inventory session."""

	IDLE = "idle"
	EXTRACTING = "extracting"
	SEARCHING = "searching"


class LookupMode(str, Enum):
	"""How a lookup query should be interpreted."""

	BY_IDENTIFIER = "cas"
	BY_NAME = "name"


@dataclass
class ImageItem:
	"""An uploaded label image and its extraction status."""

	id: str
	data: bytes
	media_type: str
	filename: str = "upload"
	status: ImageStatus = ImageStatus.PENDING
	created_at: float = field(default_factory=lambda: time.time())


@dataclass
class Record:
	"""One inventory row with an open set of string fields.

	Attributes:
		fields: Field name to value, in the order the fields were first seen.
		source_image_id: Id of the image the row was extracted from, if any.
	"""

	fields: Dict[str, str] = field(default_factory=dict)
	source_image_id: Optional[str] = None

	def to_row(self) -> Dict[str, str]:
		"""Return the field mapping without the image back-reference."""
		return {key: value for key, value in self.fields.items() if key != SOURCE_IMAGE_FIELD}


@dataclass
class PendingEdit:
	"""Scratch copy of a record that is being edited."""

	index: int
	fields: Dict[str, str]


@dataclass
class BatchReport:
	"""Outcome of one extraction batch."""

	total: int
	extracted: List[str] = field(default_factory=list)
	failed: List[str] = field(default_factory=list)
	skipped: List[str] = field(default_factory=list)

	def as_dict(self) -> Dict[str, object]:
		return {
			"total": self.total,
			"extracted": list(self.extracted),
			"failed": list(self.failed),
			"skipped": list(self.skipped),
		}


def blank_fields(name: str = MISSING_PLACEHOLDER) -> Dict[str, str]:
	"""Return the canonical field set with every value empty except the name."""
	fields = {column: MISSING_PLACEHOLDER for column in CANONICAL_FIELDS}
	fields[NAME_FIELD] = name
	return fields
