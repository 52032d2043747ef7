"""Embedding providers and the factory that picks one from settings."""

from enum import Enum

from vaultrag.configs import Settings
from vaultrag.embedders.hosted import HostedEmbeddingProvider
from vaultrag.embedders.self_hosted import SelfHostedEmbeddingProvider
from vaultrag.protocols import EmbeddingProvider


class ProviderKind(str, Enum):
    HOSTED = "hosted"
    SELF_HOSTED = "self_hosted"
    LOCAL = "local"


def resolve_provider_kind(settings: Settings) -> tuple[ProviderKind, str]:
    """Decide which provider variant the settings call for.

    Evaluated in order:
    1. an explicit self-hosted embedding URL
    2. custom provider mode with a custom API base
    3. local provider mode
    4. the hosted API

    Returns:
        The provider kind and, for self-hosted providers, the endpoint URL
    """
    if settings.custom_embedding_url.strip():
        return ProviderKind.SELF_HOSTED, settings.custom_embedding_url.strip()

    if settings.provider_mode == "custom" and settings.custom_api_base.strip():
        return ProviderKind.SELF_HOSTED, settings.custom_api_base.strip()

    if settings.provider_mode == "local":
        return ProviderKind.LOCAL, ""

    return ProviderKind.HOSTED, ""


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Construct the embedding provider selected by ``settings``.

    Raises:
        ConfigError: the selected provider is missing required configuration
    """
    kind, url = resolve_provider_kind(settings)

    if kind is ProviderKind.SELF_HOSTED:
        return SelfHostedEmbeddingProvider(
            url,
            settings.embedding_model,
            api_key=settings.api_key,
            timeout=settings.embed_timeout_seconds,
        )

    if kind is ProviderKind.LOCAL:
        # Import here to avoid loading torch unless needed
        from vaultrag.embedders.sentence_transformer import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(settings.local_model)

    return HostedEmbeddingProvider(
        settings.api_key,
        settings.embedding_model,
        timeout=settings.embed_timeout_seconds,
    )


__all__ = [
    "ProviderKind",
    "resolve_provider_kind",
    "create_embedding_provider",
    "HostedEmbeddingProvider",
    "SelfHostedEmbeddingProvider",
]
