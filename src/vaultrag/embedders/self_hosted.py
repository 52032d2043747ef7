"""Self-hosted embedding provider for OpenAI-compatible servers.

Covers local RAG servers (text-embeddings-inference, Ollama,
sentence-transformers behind an HTTP shim) and air-gapped deployments.
"""

import logging
from typing import Any, Optional

import httpx

from vaultrag.errors import ConfigError, ProviderError
from vaultrag.models import EmbeddingVector

logger = logging.getLogger(__name__)


class SelfHostedEmbeddingProvider:
    """Embedding provider posting to a configured HTTP endpoint.

    The credential is optional; it is sent as a bearer token only when set.
    ``dimensions`` is provisional until the first successful response.
    """

    PROVISIONAL_DIMENSIONS = 1536

    def __init__(
        self,
        base_url: str,
        model_name: str,
        *,
        api_key: str = "",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not base_url or not base_url.strip():
            raise ConfigError("Custom embedding URL not configured")

        self._url = base_url.strip()
        self._model_name = model_name
        self._api_key = api_key
        self._dimensions = self.PROVISIONAL_DIMENSIONS
        self._observed = False
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def url(self) -> str:
        return self._url

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
        return f"custom:{self._url}#{self._model_name}"

    async def embed(self, text: str) -> EmbeddingVector:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        if not texts:
            return []

        headers = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        body = {"input": texts, "model": self._model_name, "encoding_format": "float"}

        try:
            response = await self._client.post(self._url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Custom embedding server timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning(f"Custom embedding server unreachable at {self._url}")
            raise ProviderError(
                f"Custom embedding server unreachable: {exc}", offline=True
            ) from exc

        if response.is_error:
            raise ProviderError(
                f"Custom embedding server returned {response.status_code}: {response.text}"
            )

        try:
            rows = _extract_rows(response.json())
            vectors = [EmbeddingVector.from_values(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed response from custom embedding server: {exc}") from exc

        if len(vectors) != len(texts):
            raise ProviderError(
                f"Custom embedding server returned {len(vectors)} embeddings for {len(texts)} inputs"
            )
        if any(vector.is_empty() for vector in vectors):
            raise ProviderError("Custom embedding server returned an empty embedding")

        # Update dimensions from the observed vectors
        self._dimensions = vectors[0].dimensions
        self._observed = True
        return vectors

    async def aclose(self) -> None:
        await self._client.aclose()


def _extract_rows(payload: Any) -> list:
    """Pull embedding rows out of the response shapes servers commonly use.

    Supports the OpenAI ``{"data": [{"embedding", "index"}]}`` shape and the
    Ollama ``{"embeddings": [...]}`` / ``{"embedding": [...]}`` shapes.
    """
    if not isinstance(payload, dict):
        raise TypeError(f"expected a JSON object, got {type(payload).__name__}")

    data = payload.get("data")
    if isinstance(data, list):
        if all(isinstance(item, dict) and "index" in item for item in data):
            data = sorted(data, key=lambda item: item["index"])
        return [item["embedding"] for item in data]

    if isinstance(payload.get("embeddings"), list):
        return payload["embeddings"]

    if isinstance(payload.get("embedding"), list):
        return [payload["embedding"]]

    raise KeyError("no 'data', 'embeddings' or 'embedding' field in response")
