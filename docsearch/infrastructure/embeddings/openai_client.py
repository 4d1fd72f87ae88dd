import logging
from typing import Optional, Sequence

import httpx
import numpy as np

from docsearch.core.exceptions import AuthError, NetworkError, ParseError
from docsearch.core.strategies.scoring import cosine_similarity

logger = logging.getLogger(__name__)


class OpenAIEmbeddingClient:
    """Embedding client for OpenAI-compatible `/embeddings` endpoints.

    Stateless: no retries, no caching, every call is a fresh request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize embedding client.

        Args:
            api_key: Bearer token. Empty key fails every call with AuthError.
            base_url: Provider API URL.
            model: Embedding model name.
            timeout: Request timeout in seconds.
            client: Preconfigured HTTP client (tests, shared pools).
        """
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/embeddings"
        self._model = model
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def embed(self, text: str) -> list[float]:
        if not self._api_key:
            raise AuthError("Embedding API key not set")

        try:
            response = await self._get_client().post(
                self._url,
                json={"model": self._model, "input": text},
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Embedding request failed: {e}") from e

        if response.status_code in (401, 403):
            logger.error(f"Embedding auth rejected: status {response.status_code}")
            raise AuthError(f"Embedding provider rejected credential ({response.status_code})")

        if not response.is_success:
            logger.error(
                f"Embedding request failed: status {response.status_code}, "
                f"body: {response.text[:200]}"
            )
            raise NetworkError(
                f"Embedding request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        return self._extract_embedding(response)

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _extract_embedding(response: httpx.Response) -> list[float]:
        """Decode `data[0].embedding` as 32-bit floats.

        Raises:
            ParseError: Body is not JSON or lacks a numeric embedding.
        """
        try:
            data = response.json()
            embedding = data["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ParseError(f"Failed to parse embedding from response: {e}") from e

        if not isinstance(embedding, list) or not embedding:
            raise ParseError("Response embedding is empty or not a list")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding):
            raise ParseError("Response embedding contains non-numeric values")

        try:
            with np.errstate(over="ignore"):
                vector = np.asarray(embedding, dtype=np.float32)
        except OverflowError as e:
            raise ParseError(f"Response embedding value out of range: {e}") from e
        if not np.isfinite(vector).all():
            raise ParseError("Response embedding contains non-finite values")

        return vector.tolist()
