from __future__ import annotations

import inspect
import io
from typing import Any, Callable, List, Optional, Union

import pytest
from PIL import Image

from services.extraction.extraction_client import TransportError

Reply = Union[str, Exception]


class FakeExtractionClient:
    """Stand-in for ExtractionClient that replays canned replies in call order."""

    def __init__(self, replies: Optional[List[Reply]] = None, before_reply: Optional[Callable[[int], Any]] = None):
        self.replies = list(replies or [])
        self.before_reply = before_reply
        self.calls: List[dict] = []

    async def _next(self) -> str:
        call_number = len(self.calls) - 1
        if self.before_reply is not None:
            result = self.before_reply(call_number)
            if inspect.isawaitable(result):
                await result
        if not self.replies:
            raise TransportError("No canned reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def extract_from_image(self, image_bytes: bytes, media_type: str, instruction: str) -> str:
        self.calls.append({"image": image_bytes, "media_type": media_type, "instruction": instruction})
        return await self._next()

    async def complete_text(self, instruction: str) -> str:
        self.calls.append({"instruction": instruction})
        return await self._next()


def make_png(color=(200, 30, 30), size=(320, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()
