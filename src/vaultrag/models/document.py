"""Source documents and the change notifications emitted for them."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class SourceDocument:
    """A document in the corpus, identified by a stable path-like key."""

    source_id: str
    modified_ms: int  # epoch milliseconds of the last modification


class ChangeKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


@dataclass(frozen=True)
class ChangeEvent:
    """A corpus change reported by a document source.

    ``document`` is set for created, modified and renamed events;
    ``source_id`` alone identifies a deleted document, and
    ``old_source_id`` the previous key of a renamed one.
    """

    kind: ChangeKind
    document: Optional[SourceDocument] = None
    source_id: Optional[str] = None
    old_source_id: Optional[str] = None

    @property
    def target_id(self) -> Optional[str]:
        if self.document is not None:
            return self.document.source_id
        return self.source_id
