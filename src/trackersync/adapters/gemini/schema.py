"""Pydantic models describing the Gemini ``generateContent`` payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GeminiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Part(GeminiBaseModel):
    text: str | None = None


class Content(GeminiBaseModel):
    parts: list[Part] = Field(default_factory=list)
    role: str | None = None


class Candidate(GeminiBaseModel):
    content: Content | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class GenerateContentResponse(GeminiBaseModel):
    candidates: list[Candidate] = Field(default_factory=list)

    def first_text(self) -> str:
        """Text of the first part of the first candidate, or ``""`` when absent."""

        if not self.candidates:
            return ""
        content = self.candidates[0].content
        if content is None or not content.parts:
            return ""
        return content.parts[0].text or ""


class GenerationConfigPayload(GeminiBaseModel):
    temperature: float
    max_output_tokens: int = Field(alias="maxOutputTokens")


class TextPart(GeminiBaseModel):
    text: str


class ContentPayload(GeminiBaseModel):
    parts: list[TextPart]


class GenerateContentRequest(GeminiBaseModel):
    contents: list[ContentPayload]
    generation_config: GenerationConfigPayload = Field(alias="generationConfig")
