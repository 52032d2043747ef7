"""Hosted embedding provider backed by the OpenAI embeddings API."""

import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from vaultrag.errors import ConfigError, ProviderError
from vaultrag.models import EmbeddingVector

logger = logging.getLogger(__name__)

KNOWN_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
DEFAULT_DIMENSIONS = 1536


class HostedEmbeddingProvider:
    """Embedding provider using the official OpenAI SDK (bring your own key).

    The SDK's own retries are disabled; batch retries are owned by the
    index coordinator.
    """

    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        api_key: str,
        model_name: str | None = None,
        *,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        if not api_key:
            raise ConfigError("OpenAI API key not configured")

        self._model_name = model_name or self.DEFAULT_MODEL
        self._dimensions = KNOWN_DIMENSIONS.get(self._model_name, DEFAULT_DIMENSIONS)
        self._observed = self._model_name in KNOWN_DIMENSIONS
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def dimensions_known(self) -> bool:
        return self._observed

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def fingerprint(self) -> str:
        return f"openai:{self._model_name}"

    async def embed(self, text: str) -> EmbeddingVector:
        vectors = await self._create(text, expected=1)
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        if not texts:
            return []
        return await self._create(texts, expected=len(texts))

    async def aclose(self) -> None:
        await self._client.close()

    async def _create(self, input: str | list[str], expected: int) -> list[EmbeddingVector]:
        try:
            response = await self._client.embeddings.create(
                model=self._model_name,
                input=input,
                encoding_format="float",
            )
        except openai.APITimeoutError as exc:
            raise ProviderError(f"OpenAI embedding request timed out: {exc}") from exc
        except openai.APIConnectionError as exc:
            logger.warning("OpenAI embedding skipped: offline detected")
            raise ProviderError(
                "Offline: skipped embedding generation", offline=True
            ) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"Failed to generate embedding: {exc}") from exc

        if len(response.data) != expected:
            raise ProviderError(
                f"OpenAI returned {len(response.data)} embeddings for {expected} inputs"
            )

        items = sorted(response.data, key=lambda item: item.index)
        vectors = [EmbeddingVector.from_values(item.embedding) for item in items]
        if any(vector.is_empty() for vector in vectors):
            raise ProviderError("OpenAI returned an empty embedding")
        self._dimensions = vectors[0].dimensions
        self._observed = True
        return vectors
