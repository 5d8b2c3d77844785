import logging
import os
from dataclasses import dataclass
from typing import Optional

from services.export_adapter import DEFAULT_FILENAME

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _read_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a valid number.") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}.")
    return value


@dataclass
class AppConfig:
    """
    Runtime settings read from the environment (and a .env file, if loaded).

    - OPENAI_API_KEY is required only when no extraction client is injected.
    - EXTRACTION_TIMEOUT and MAX_OUTPUT_TOKENS must be positive numbers.
    - LOG_LEVEL accepts the usual level names; unknown names fall back to INFO.
    """

    openai_api_key: Optional[str]
    model: str = "gpt-5"
    timeout: float = 60.0
    max_output_tokens: int = 1000
    export_filename: str = DEFAULT_FILENAME
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL", "gpt-5").strip() or "gpt-5",
            timeout=_read_number("EXTRACTION_TIMEOUT", 60.0),
            max_output_tokens=_read_number("MAX_OUTPUT_TOKENS", 1000, int),
            export_filename=os.getenv("EXPORT_FILENAME", DEFAULT_FILENAME).strip() or DEFAULT_FILENAME,
            log_level=_LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper().strip(), logging.INFO),
        )

    def require_api_key(self) -> str:
        if not self.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        return self.openai_api_key
