"""Session state shared by the inventory API: images, records, and the current activity."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple

from models.inventory_models import BatchReport, ImageItem, LookupMode, Record, SessionMode
from services.extraction.extraction_client import ExtractionClient
from services.image_queue import ImageQueue
from services.lookup_service import LookupService
from services.orchestrator import ExtractionOrchestrator
from services.record_store import RecordStore

LOGGER = logging.getLogger(__name__)
MAX_NOTICES = 50


class SessionBusyError(RuntimeError):
	"""Raised when an activity is requested while another one is running."""


class InventorySession:
	"""Own the image queue and record store and track the single foreground activity.

	The mode is IDLE, EXTRACTING, or SEARCHING; a new batch or lookup is
	refused unless the session is idle. Editing is independent of the mode
	and is tracked by the store's pending edit.
	"""

	def __init__(self, client: ExtractionClient) -> None:
		self.queue = ImageQueue()
		self.store = RecordStore()
		self.orchestrator = ExtractionOrchestrator(client, self.store, self.queue)
		self.lookup_service = LookupService(client, self.store)
		self.mode = SessionMode.IDLE
		self.progress: Optional[Tuple[int, int]] = None
		self.last_report: Optional[BatchReport] = None
		self.notices: Deque[Dict[str, Any]] = deque(maxlen=MAX_NOTICES)

	def add_notice(self, level: str, message: str, image_id: Optional[str] = None) -> None:
		"""Record a user-visible message."""
		self.notices.append({"level": level, "message": message, "image_id": image_id})

	def intake(self, uploads: Iterable[Tuple[bytes, str, Optional[str]]]) -> List[ImageItem]:
		"""Add uploaded images as pending items, in the order given."""
		return [self.queue.add(data, media_type, filename) for data, media_type, filename in uploads]

	def remove_image(self, image_id: str) -> int:
		"""Remove an image and every record extracted from it; returns the record count removed."""
		self.queue.remove(image_id)
		removed = self.store.remove_by_source(image_id)
		LOGGER.info("Removed image %s and %d record(s)", image_id, removed)
		return removed

	def _require_idle(self) -> None:
		if self.mode != SessionMode.IDLE:
			raise SessionBusyError(f"Session is busy ({self.mode.value}).")

	def begin_batch(self) -> List[ImageItem]:
		"""Reserve the session for extraction and return the images to process."""
		self._require_idle()
		items = self.queue.pending()
		if not items:
			raise ValueError("There are no images waiting for extraction.")
		self.mode = SessionMode.EXTRACTING
		self.progress = None
		return items

	def _on_progress(self, index: int, total: int, item: ImageItem) -> None:
		self.progress = (index, total)

	def _on_failure(self, index: int, item: ImageItem, exc: Exception) -> None:
		# Upload position, as in the snapshot labels.
		position = self.queue.position(item.id)
		number = index + 1 if position is None else position + 1
		self.add_notice("error", f"Error extracting data from image {number}. Please try again.", item.id)

	async def run_batch(self, items: List[ImageItem], instruction: Optional[str] = None) -> BatchReport:
		"""Run a batch reserved with begin_batch and release the session afterwards."""
		try:
			report = await self.orchestrator.run(
				items,
				instruction,
				on_progress=self._on_progress,
				on_failure=self._on_failure,
			)
			self.last_report = report
			return report
		finally:
			self.mode = SessionMode.IDLE
			self.progress = None

	async def extract_all(self, instruction: Optional[str] = None) -> BatchReport:
		"""Extract every image that has not been extracted yet."""
		items = self.begin_batch()
		return await self.run_batch(items, instruction)

	async def lookup(self, query: str, mode: LookupMode) -> Record:
		"""Run a lookup while holding the session in SEARCHING mode."""
		self._require_idle()
		self.mode = SessionMode.SEARCHING
		try:
			return await self.lookup_service.lookup(query, mode)
		finally:
			self.mode = SessionMode.IDLE

	def add_manual(self, name: str) -> Record:
		"""Explicit fallback after a failed lookup."""
		return self.lookup_service.add_manual(name)

	def clear_all(self) -> None:
		"""Drop every image, record, and notice."""
		if self.mode == SessionMode.EXTRACTING:
			raise SessionBusyError("Cannot clear while extraction is running.")
		self.queue.clear()
		self.store.clear()
		self.notices.clear()
		self.progress = None
		self.last_report = None

	def progress_label(self) -> Optional[str]:
		if self.mode != SessionMode.EXTRACTING:
			return None
		if self.progress is None:
			return "Processing ..."
		index, total = self.progress
		return f"Processing {index + 1}/{total}"

	def snapshot(self) -> Dict[str, Any]:
		"""Return a JSON-ready view of the whole session."""
		columns = self.store.columns()
		pending = self.store.pending_edit
		return {
			"mode": self.mode.value,
			"progress": self.progress_label(),
			"images": [image_payload(item, position) for position, item in enumerate(self.queue.items())],
			"columns": columns,
			"rows": self.store.rows(columns),
			"editing": {"index": pending.index, "fields": dict(pending.fields)} if pending else None,
			"notices": list(self.notices),
			"last_batch": self.last_report.as_dict() if self.last_report else None,
		}


def image_payload(item: ImageItem, position: int) -> Dict[str, Any]:
	"""Return the public view of an image item."""
	return {
		"id": item.id,
		"label": f"Label {position + 1}",
		"filename": item.filename,
		"media_type": item.media_type,
		"status": item.status.value,
	}
