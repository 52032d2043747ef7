"""SentenceTransformer-based embedding provider for fully local indexing."""

import asyncio

import numpy as np
from sentence_transformers import SentenceTransformer

from vaultrag.errors import ProviderError
from vaultrag.models import EmbeddingVector


class SentenceTransformerEmbedder:
    """Embedding provider using the sentence-transformers library in-process.

    Uses all-MiniLM-L6-v2 by default - a fast, lightweight model that needs
    no server or API key. Encoding runs in a worker thread so the event loop
    stays responsive.
    """

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: str | None = None):
        self._model_name = model_name or self.DEFAULT_MODEL
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first access."""
        if self._model is None:
            self._model = SentenceTransformer(self._model_name)
        return self._model

    @property
    def dimensions(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    @property
    def dimensions_known(self) -> bool:
        # Reading dimensions loads the model; only trust it once loaded
        return self._model is not None

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def fingerprint(self) -> str:
        return f"local:{self._model_name}"

    async def embed(self, text: str) -> EmbeddingVector:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        if not texts:
            return []

        try:
            embeddings = await asyncio.to_thread(self._encode, texts)
        except (OSError, RuntimeError, ValueError) as exc:
            raise ProviderError(f"Local embedding model {self._model_name} failed: {exc}") from exc

        return [EmbeddingVector.from_values(row) for row in embeddings]

    async def aclose(self) -> None:
        self._model = None

    def _encode(self, texts: list[str]) -> np.ndarray:
        return self.model.encode(
            texts,
            convert_to_numpy=True,
            normalize_embeddings=True,  # For cosine similarity
        )
