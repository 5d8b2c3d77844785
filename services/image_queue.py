"""Simple in-memory queue of uploaded label images."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import uuid4

from models.inventory_models import ImageItem, ImageStatus


class ImageQueue:
	"""Keep uploaded images in upload order and track their extraction status."""

	def __init__(self) -> None:
		self._items: Dict[str, ImageItem] = {}

	def __len__(self) -> int:
		return len(self._items)

	def add(self, data: bytes, media_type: str, filename: Optional[str] = None) -> ImageItem:
		"""Register a new pending image."""
		if not data:
			raise ValueError("Image bytes are required.")
		item = ImageItem(id=uuid4().hex, data=data, media_type=media_type or "image/jpeg", filename=filename or "upload")
		self._items[item.id] = item
		return item

	def get(self, image_id: str) -> ImageItem:
		"""Return an image or raise KeyError if missing."""
		item = self._items.get(image_id)
		if item is None:
			raise KeyError(f"Image {image_id} not found")
		return item

	def contains(self, image_id: str) -> bool:
		return image_id in self._items

	def remove(self, image_id: str) -> ImageItem:
		"""Remove an image or raise KeyError if missing."""
		item = self.get(image_id)
		del self._items[image_id]
		return item

	def items(self) -> List[ImageItem]:
		"""Return the images in upload order."""
		return list(self._items.values())

	def position(self, image_id: str) -> Optional[int]:
		"""Return the zero-based upload position of an image, or None if it was removed."""
		for position, key in enumerate(self._items):
			if key == image_id:
				return position
		return None

	def pending(self) -> List[ImageItem]:
		"""Return images that still need extraction, in upload order."""
		return [item for item in self._items.values() if item.status != ImageStatus.EXTRACTED]

	def set_status(self, image_id: str, status: ImageStatus) -> bool:
		"""Update an image status; returns False when the image was removed."""
		item = self._items.get(image_id)
		if item is None:
			return False
		item.status = status
		return True

	def clear(self) -> None:
		self._items = {}
