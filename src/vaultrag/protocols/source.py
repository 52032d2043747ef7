"""Protocol for document corpora."""

from typing import Protocol, runtime_checkable

from vaultrag.models import SourceDocument


@runtime_checkable
class DocumentSource(Protocol):
    """Protocol for the corpus the index is built from.

    Implementations list the documents currently present and read their
    text on demand. Uses structural subtyping - no inheritance required.
    """

    def list_documents(self) -> list[SourceDocument]:
        """Return every document currently in the corpus."""
        ...

    async def read(self, document: SourceDocument) -> str:
        """Return the full text content of a document."""
        ...
