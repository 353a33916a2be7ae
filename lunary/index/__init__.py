"""Index management: watched directories, rebuilds and status."""

from lunary.index.backends import IndexBackend, SimulatedIndexBackend
from lunary.index.formatting import format_file_size, format_timestamp
from lunary.index.manager import IndexManager

__all__ = [
    "IndexBackend",
    "IndexManager",
    "SimulatedIndexBackend",
    "format_file_size",
    "format_timestamp",
]
