"""Vision analysis of nutrition labels and food photos."""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Protocol

from macroscan.services.retry import RetryPolicy

ANALYSIS_PROMPT = (
    "Read the nutrition label or estimate the food in the photo. "
    "Return JSON with nutrition, ratio, raw_data, classified_data and metadata "
    "sections, with a <field>_confidence score (0-1) beside every extracted value."
)

_MINIMAL_TAIL = (
    '"raw_data": {"ocr_full_text": "", "nutrition_table_text": "", '
    '"ingredients_text": "", "package_text_all": ""}, '
    '"classified_data": null, '
    '"metadata": {"image_quality": "medium"}}'
)

_logger = logging.getLogger(__name__)


class VisionServiceError(Exception):
    """Base error for failed vision analysis."""


class VisionResponseError(VisionServiceError):
    """Raised when the model answer cannot be used as an analysis payload."""


class VisionClient(Protocol):
    """Interface for LLM vision analysis."""

    async def analyze(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        prompt: str,
    ) -> str:
        """Return the model's raw text answer for an image."""


@dataclass
class VisionService:
    """Calls the vision model with a timeout ceiling and retries."""

    client: VisionClient
    model: str
    reasoning_effort: str | None
    store: bool
    timeout_seconds: float = 30.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    async def analyze(self, image_bytes: bytes) -> dict[str, object]:
        """Return the analysis payload for an image."""
        data_url = _to_data_url(image_bytes)

        async def call() -> str:
            return await asyncio.wait_for(
                self.client.analyze(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    image_data_url=data_url,
                    prompt=ANALYSIS_PROMPT,
                ),
                timeout=self.timeout_seconds,
            )

        text = await self.retry_policy.run(call, on_retry=_log_retry)
        return parse_analysis(text)


def parse_analysis(text: str) -> dict[str, object]:
    """Parse the model answer, repairing a broken raw_data tail if needed."""
    if not text or not text.strip():
        raise VisionResponseError("Empty response from vision model")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        _logger.warning("Vision JSON parse failed, attempting sanitization: %s", exc)
        try:
            payload = json.loads(_sanitize(text))
        except json.JSONDecodeError as retry_exc:
            raise VisionResponseError(
                f"Failed to parse JSON response ({len(text)} characters)"
            ) from retry_exc
    if not isinstance(payload, dict):
        raise VisionResponseError("Vision response is not a JSON object")
    return payload


def _sanitize(text: str) -> str:
    """Replace everything from raw_data onward with a minimal valid tail.

    Free-form OCR text is where unescaped quotes and newlines usually break
    the answer; the nutrition and ratio sections come before it.
    """
    start = text.find("{")
    raw_data_index = text.find('"raw_data"')
    if start == -1 or raw_data_index == -1:
        return text
    head = text[start:raw_data_index].rstrip()
    if not head.endswith((",", "{")):
        head += ","
    return head + " " + _MINIMAL_TAIL


def _log_retry(attempt: int, exc: Exception) -> None:
    _logger.warning("Vision analysis retry attempt %s: %s", attempt, exc)


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
