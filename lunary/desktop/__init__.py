"""OS shell collaborators (file open/reveal, directory picker)."""

from lunary.desktop.picker import DirectoryPicker
from lunary.desktop.shell import open_path, reveal_path

__all__ = ["DirectoryPicker", "open_path", "reveal_path"]
