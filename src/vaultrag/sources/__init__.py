"""Document sources and change detection."""

from vaultrag.sources.folder_source import FolderSource
from vaultrag.sources.watcher import FolderWatcher

__all__ = ["FolderSource", "FolderWatcher"]
