"""Exception hierarchy for the retrieval index."""


class VaultRAGError(Exception):
    """Base class for every error raised by vaultrag."""


class ConfigError(VaultRAGError):
    """Invalid chunking parameters or an under-configured embedding provider."""


class DimensionMismatchError(VaultRAGError):
    """Two embedding vectors of different dimensionality were compared."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension mismatch: {expected} vs {actual}")
        self.expected = expected
        self.actual = actual


class ProviderError(VaultRAGError):
    """An embedding call failed (network, auth, rate limit, bad response).

    ``offline`` is set when the failure looks like a missing network
    connection rather than a server-side rejection.
    """

    def __init__(self, message: str, *, offline: bool = False):
        super().__init__(message)
        self.offline = offline


class CacheError(VaultRAGError):
    """The persisted cache document could not be read, parsed or written."""
