"""HTTP client for the Gemini ``generateContent`` API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from trackersync.adapters.http_resilience import ResilientClient, default_client_factory
from trackersync.config.gemini import GeminiConfig, get_gemini_config
from trackersync.domain.errors import UpstreamError

from .schema import (
    ContentPayload,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfigPayload,
    TextPart,
)

if TYPE_CHECKING:
    from trackersync.adapters.http_resilience import ClientFactory

log = getLogger(__name__)

_ERROR_BODY_LIMIT = 2000


class GeminiExtractionClient:
    """Send prompts to Gemini with a fixed low-temperature, bounded-length configuration."""

    def __init__(
        self,
        *,
        config: GeminiConfig | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config or get_gemini_config()
        self._client_factory = client_factory or default_client_factory

    @property
    def config(self) -> GeminiConfig:
        return self._config

    def generate(self, prompt: str) -> str:
        return asyncio.run(self._generate_async(prompt))

    def _build_request(self, prompt: str) -> GenerateContentRequest:
        generation = self._config.generation
        return GenerateContentRequest(
            contents=[ContentPayload(parts=[TextPart(text=prompt)])],
            generationConfig=GenerationConfigPayload(
                temperature=generation.temperature,
                maxOutputTokens=generation.max_output_tokens,
            ),
        )

    async def _generate_async(self, prompt: str) -> str:
        body = self._build_request(prompt).model_dump(by_alias=True)
        path = f"models/{self._config.model}:generateContent"
        try:
            async with self._client_factory(self._config.resilience) as client:
                response = await self._perform_request(client=client, path=path, body=body)
        except httpx.HTTPError as exc:
            log.error(f"Gemini request failed: {exc!r}")
            raise UpstreamError(f"Gemini request failed: {exc}") from exc

        if response.is_error:
            error_body = response.text[:_ERROR_BODY_LIMIT]
            log.error(f"Gemini API error {response.status_code}: {error_body}")
            raise UpstreamError(
                f"Gemini error: {response.status_code} - {error_body}",
                status=response.status_code,
                body=error_body,
            )

        try:
            payload = GenerateContentResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise UpstreamError(
                "Unexpected Gemini response payload",
                status=response.status_code,
                body=response.text[:_ERROR_BODY_LIMIT],
            ) from exc

        text = payload.first_text()
        if not text:
            log.warning("Gemini response carried no candidate text")
        return text

    async def _perform_request(
        self,
        *,
        client: ResilientClient,
        path: str,
        body: dict[str, object],
    ) -> httpx.Response:
        return await client.post(path, params={"key": self._config.api_key}, json=body)
