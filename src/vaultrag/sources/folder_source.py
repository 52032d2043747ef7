"""Document source for a local folder of notes."""

import asyncio
import os
from pathlib import Path
from typing import Iterable, Optional

from vaultrag.models import SourceDocument

# Common artifacts never worth indexing
SKIP_PATTERNS = {
    "__pycache__",
    "node_modules",
    "venv",
    "env",
    "dist",
    "build",
}


class FolderSource:
    """Document source over a local folder, walked recursively.

    Document ids are POSIX-style paths relative to the root, so they stay
    stable across platforms and match what a note editor reports.
    """

    source_type = "folder"

    def __init__(self, root: Path | str, include_extensions: Iterable[str] = (".md",)):
        self.root = Path(root)
        self.include_extensions = {ext.lower() for ext in include_extensions}

    def list_documents(self) -> list[SourceDocument]:
        """Return every indexable document under the root, sorted by id."""
        documents = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            # filter directories in-place to avoid descending into them
            dirnames[:] = [d for d in dirnames if not self._should_skip(d)]
            for filename in filenames:
                if self._should_skip(filename):
                    continue
                full_path = Path(dirpath) / filename
                document = self._describe(full_path)
                if document is not None:
                    documents.append(document)

        documents.sort(key=lambda d: d.source_id)
        return documents

    def get(self, source_id: str) -> Optional[SourceDocument]:
        """Describe one document by id, or None if it is missing or not indexable."""
        return self._describe(self.root / source_id)

    async def read(self, document: SourceDocument) -> str:
        path = self.root / document.source_id
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")

    def _describe(self, path: Path) -> Optional[SourceDocument]:
        if self.include_extensions and path.suffix.lower() not in self.include_extensions:
            return None
        try:
            stat = path.stat()
        except OSError:
            return None
        if not path.is_file():
            return None

        return SourceDocument(
            source_id=path.relative_to(self.root).as_posix(),
            modified_ms=stat.st_mtime_ns // 1_000_000,
        )

    def _should_skip(self, name: str) -> bool:
        """Skip hidden files and folders and common build artifacts."""
        return name.startswith(".") or name in SKIP_PATTERNS
