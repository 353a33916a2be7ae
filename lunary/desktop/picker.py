"""Directory picker collaborator."""

from typing import Protocol


class DirectoryPicker(Protocol):
    """OS dialog asking the user for one or more directories."""

    async def pick_directories(self) -> list[str]:
        """Absolute paths chosen, or an empty list when cancelled."""
        ...
