"""Supported LLM providers."""

from enum import StrEnum


class ModelProvider(StrEnum):
    GEMINI = "gemini"
    GPT = "gpt"
    GROK = "grok"

    @property
    def label(self) -> str:
        return self.value.upper()
