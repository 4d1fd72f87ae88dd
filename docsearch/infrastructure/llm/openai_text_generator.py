import logging
from typing import Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = "Summarize this document briefly:\n\n{text}\n\nSummary:"

ENHANCE_PROMPT = (
    "Enhance this search query with related terms. "
    "Reply with the enhanced query only.\n\nQuery: {query}\nEnhanced:"
)


class OpenAITextGenerator:
    """Summary and query-enhancement hooks over an OpenAI-compatible chat API."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5:7b",
        api_key: str = "ollama",
        summary_max_chars: int = 1500,
        max_tokens: int = 64,
        temperature: float = 0.3,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize text generator.

        Args:
            base_url: Chat API URL.
            model: Model name.
            api_key: API key (any value for Ollama).
            summary_max_chars: Document text is truncated to this length.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            client: Preconfigured OpenAI client.
        """
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key or "ollama")
        self._model = model
        self._summary_max_chars = summary_max_chars
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def summarize(self, text: str) -> str:
        if len(text) > self._summary_max_chars:
            text = text[: self._summary_max_chars] + "..."
        return await self._complete(SUMMARY_PROMPT.format(text=text))

    async def enhance_query(self, query: str) -> str:
        enhanced = await self._complete(ENHANCE_PROMPT.format(query=query))
        return enhanced or query

    async def _complete(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    async def close(self) -> None:
        await self._client.close()
