"""Vision extractor speaking the OpenAI chat-completions protocol.

Used against an OpenAI-compatible AI gateway; the model is forced to call
the ``parse_irish_bill`` tool so the answer is always structured JSON.
"""
from __future__ import annotations

import asyncio
import time

import openai
import structlog

from ..exceptions import ExtractionError
from ..prompts.bill_schema import TOOL_NAME, bill_tool
from ..prompts.registry import PromptRegistry
from .base import VisionExtractor
from .response_parser import parse_tool_call

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 2.0]
MAX_IMAGES = 3

RETRYABLE_EXCEPTIONS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


def build_user_content(prompt: str, file_urls: list[str], *, is_pdf: bool) -> list[dict]:
    """Text prompt followed by the document (PDF) or up to three images."""
    content: list[dict] = [{"type": "text", "text": prompt}]
    if is_pdf and file_urls:
        content.append({"type": "document", "document_url": {"url": file_urls[0]}})
        return content
    for url in file_urls[:MAX_IMAGES]:
        content.append({"type": "image_url", "image_url": {"url": url}})
    return content


class OpenAIVisionExtractor(VisionExtractor):
    """Extractor for vision models behind an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.5-pro",
        base_url: str = "https://ai.gateway.lovable.dev/v1",
        *,
        temperature: float = 0.0,
        timeout: int = 120,
        prompts: PromptRegistry | None = None,
        client: openai.AsyncOpenAI | None = None,
    ):
        self._model = model
        self._temperature = temperature
        self._prompts = prompts or PromptRegistry()
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=float(timeout),
        )

    def get_model_name(self) -> str:
        return self._model

    async def extract(self, file_urls: list[str], *, is_pdf: bool = False) -> dict:
        if not file_urls:
            raise ExtractionError("No file provided for extraction", status=400)

        prompt = self._prompts.render("parse_bill")
        messages = [{"role": "user", "content": build_user_content(prompt, file_urls, is_pdf=is_pdf)}]

        response = await self._call_with_retry(messages)
        if not response.choices:
            raise ExtractionError("No structured data returned from AI")

        parsed = parse_tool_call(response.choices[0].message, TOOL_NAME)
        logger.info(
            "vision_extraction_complete",
            model=self._model,
            is_pdf=is_pdf,
            files=len(file_urls),
            top_level_keys=sorted(parsed),
        )
        return parsed

    async def _call_with_retry(self, messages: list[dict]):
        """Call the gateway, retrying rate limits and transient server errors."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                start = time.monotonic()
                response = await self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    tools=[bill_tool()],
                    tool_choice={"type": "function", "function": {"name": TOOL_NAME}},
                    temperature=self._temperature,
                )
                logger.info(
                    "vision_api_call",
                    model=self._model,
                    latency_ms=int((time.monotonic() - start) * 1000),
                )
                return response

            except RETRYABLE_EXCEPTIONS as exc:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[attempt]
                    logger.warning(
                        "vision_api_retry",
                        attempt=attempt + 1,
                        delay=delay,
                        error=str(exc),
                        model=self._model,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error("vision_api_exhausted_retries", attempts=attempt + 1, error=str(exc))
                raise ExtractionError(
                    "AI parsing failed",
                    status=getattr(exc, "status_code", None) or 502,
                    details=str(exc)[:500],
                ) from exc

            except openai.APIStatusError as exc:
                logger.error("vision_api_error", status=exc.status_code, error=str(exc)[:500])
                raise ExtractionError(
                    "AI parsing failed",
                    status=exc.status_code,
                    details=str(exc)[:500],
                ) from exc

        raise ExtractionError("AI parsing failed")
