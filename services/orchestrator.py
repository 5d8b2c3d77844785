"""Sequential extraction of label images into inventory records."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from models.inventory_models import BatchReport, ImageItem, ImageStatus, Record
from services.extraction.extraction_client import ExtractionClient
from services.extraction.prompts import resolve_instruction
from services.extraction.response_parser import parse_record
from services.image_queue import ImageQueue
from services.record_store import RecordStore

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, ImageItem], None]
FailureCallback = Callable[[int, ImageItem, Exception], None]


class ExtractionOrchestrator:
    """Drive images through the model one at a time and append the parsed records.

    Images are processed strictly in list order with a single request in
    flight, so records land in the store in the same order as their images.
    A failing image is marked failed and the batch moves on. Callers must not
    start a second batch while one is running.
    """

    def __init__(self, client: ExtractionClient, store: RecordStore, queue: ImageQueue) -> None:
        if client is None:
            raise ValueError("Extraction client must be provided.")
        self.client = client
        self.store = store
        self.queue = queue

    def _label_number(self, item: ImageItem) -> Optional[int]:
        position = self.queue.position(item.id)
        return None if position is None else position + 1

    async def run(
        self,
        items: Sequence[ImageItem],
        instruction: Optional[str] = None,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> BatchReport:
        """Extract every image in order.

        Args:
            items: Images to process, in processing order.
            instruction: Custom instruction for the whole batch; blank uses the default.
            on_progress: Called with (index, total, item) before each request.
            on_failure: Called with (index, item, error) when an image fails.

        Returns:
            A report listing extracted, failed, and skipped image ids.
        """
        prompt = resolve_instruction(instruction)
        total = len(items)
        report = BatchReport(total=total)

        for index, item in enumerate(items):
            if not self.queue.contains(item.id):
                LOGGER.info("Skipping image %s; it was removed before dispatch", item.id)
                report.skipped.append(item.id)
                continue

            self.queue.set_status(item.id, ImageStatus.PROCESSING)
            if on_progress is not None:
                on_progress(index, total, item)

            try:
                text = await self.client.extract_from_image(item.data, item.media_type, prompt)
                fields = parse_record(text)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                if not self.queue.contains(item.id):
                    LOGGER.info("Discarding failure for image %s; it was removed while in flight", item.id)
                    report.skipped.append(item.id)
                    continue
                LOGGER.error(
                    "Error extracting data from image %s (%s): %s", self._label_number(item), item.id, exc
                )
                self.queue.set_status(item.id, ImageStatus.FAILED)
                report.failed.append(item.id)
                if on_failure is not None:
                    on_failure(index, item, exc)
                continue

            if not self.queue.contains(item.id):
                LOGGER.info("Discarding result for image %s; it was removed while in flight", item.id)
                report.skipped.append(item.id)
                continue

            self.store.append(Record(fields=fields, source_image_id=item.id))
            self.queue.set_status(item.id, ImageStatus.EXTRACTED)
            report.extracted.append(item.id)

        LOGGER.info(
            "Batch finished: %d extracted, %d failed, %d skipped",
            len(report.extracted),
            len(report.failed),
            len(report.skipped),
        )
        return report
