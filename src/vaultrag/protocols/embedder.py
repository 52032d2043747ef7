"""Protocol for embedding model providers."""

from typing import Protocol, runtime_checkable

from vaultrag.models import EmbeddingVector


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding model providers.

    Allows swapping between the hosted OpenAI API, a self-hosted
    OpenAI-compatible server, or an in-process sentence-transformers model.
    Failures of either embedding call surface as ``ProviderError``.
    """

    @property
    def dimensions(self) -> int:
        """Return the embedding dimension (may be provisional until first call)."""
        ...

    @property
    def dimensions_known(self) -> bool:
        """Whether ``dimensions`` is authoritative rather than a provisional guess."""
        ...

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        ...

    @property
    def fingerprint(self) -> str:
        """Identify the embedding space: provider kind, endpoint and model.

        Vectors from providers with different fingerprints are never mixed.
        """
        ...

    async def embed(self, text: str) -> EmbeddingVector:
        """Generate the embedding for a single text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingVector]:
        """Generate embeddings for a batch of texts.

        Returns: one vector per input text, in input order.
        """
        ...

    async def aclose(self) -> None:
        """Release network clients or models held by the provider."""
        ...
