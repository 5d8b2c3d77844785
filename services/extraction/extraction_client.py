"""Vision and text requests to OpenAI for label extraction."""

import base64
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from services.extraction.response_parser import extract_text, extract_usage

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = "gpt-5"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_OUTPUT_TOKENS = 1000


class TransportError(RuntimeError):
    """Raised when a model call fails or returns no text."""


class ExtractionClient:
    """Send one image or one text query to the model and return raw text."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> None:
        """Initialize the client wrapper.

        Args:
            client: Shared async OpenAI client.
            model: Model name used for every request.
            timeout: Per-request timeout in seconds.
            max_output_tokens: Upper bound on generated tokens per request.
        """
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens

    def _encode_image(self, image_bytes: bytes, media_type: str) -> str:
        """Encode image bytes to a base64 data URL string."""
        encoded = base64.b64encode(image_bytes).decode("utf-8")
        return f"data:{media_type};base64,{encoded}"

    def _build_input(self, instruction: str, image_url: Optional[str] = None) -> List[Dict[str, Any]]:
        """Build the Responses API input with the image ahead of the instruction."""
        content: List[Dict[str, Any]] = []
        if image_url:
            content.append({"type": "input_image", "image_url": image_url})
        content.append({"type": "input_text", "text": instruction})
        return [{"type": "message", "role": "user", "content": content}]

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> str:
        """Send the request and return its text, mapping failures to TransportError."""
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=inputs,
                max_output_tokens=self.max_output_tokens,
                timeout=self.timeout,
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI Responses API call: %s", exc)
            raise TransportError(f"Model request failed: {exc}") from exc

        LOGGER.info("Model response received; usage=%s", extract_usage(response))
        text = extract_text(response)
        if not text.strip():
            raise TransportError("Model response did not include text.")
        return text

    async def extract_from_image(self, image_bytes: bytes, media_type: str, instruction: str) -> str:
        """Ask the model to read one label image.

        Args:
            image_bytes: Raw bytes of the uploaded image.
            media_type: MIME type of the image (e.g., image/jpeg).
            instruction: Extraction instruction sent with the image.

        Returns:
            The raw text produced by the model.

        Raises:
            ValueError: If the image is empty.
            TransportError: If the request fails or yields no text.
        """
        if not image_bytes:
            raise ValueError("Image content is required for extraction.")
        image_url = self._encode_image(image_bytes, media_type or "image/jpeg")
        return await self._create_response(self._build_input(instruction, image_url))

    async def complete_text(self, instruction: str) -> str:
        """Send a text-only query and return the raw text."""
        return await self._create_response(self._build_input(instruction))
