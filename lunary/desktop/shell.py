"""
Open files or reveal them in the system file browser.

Fire-and-forget: the launched process is not awaited and failures are only
logged.
"""

import asyncio
import os
import sys
from pathlib import Path

import structlog

from lunary.utils.error_handler import safe_with_default

logger = structlog.get_logger(__name__)


def _open_command(path: Path) -> list[str] | None:
    if sys.platform == "darwin":
        return ["open", str(path)]
    if sys.platform.startswith("linux"):
        return ["xdg-open", str(path)]
    return None


def _reveal_command(path: Path) -> list[str] | None:
    if sys.platform == "darwin":
        return ["open", "-R", str(path)]
    if sys.platform == "win32":
        return ["explorer", f"/select,{path}"]
    if sys.platform.startswith("linux"):
        # xdg-open has no "select" mode; open the containing folder
        target = path if path.is_dir() else path.parent
        return ["xdg-open", str(target)]
    return None


async def _launch(command: list[str]) -> None:
    await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
        env=dict(os.environ, LD_LIBRARY_PATH=""),
    )


@safe_with_default("open path", False, level="warning")
async def open_path(path: str | Path) -> bool:
    """Open ``path`` with the system default handler."""
    target = Path(path)
    logger.info("USER ACTION: opening path", path=str(target))

    if not target.exists():
        raise FileNotFoundError(str(target))

    if sys.platform == "win32":
        await asyncio.to_thread(os.startfile, str(target))  # type: ignore[attr-defined]
        return True

    command = _open_command(target)
    if command is None:
        logger.error("Attempting to open path on an unknown system", path=str(target))
        return False

    await _launch(command)
    return True


@safe_with_default("reveal path", False, level="warning")
async def reveal_path(path: str | Path) -> bool:
    """Show ``path`` in the system file browser."""
    target = Path(path)
    logger.info("USER ACTION: revealing path", path=str(target))

    if not target.exists():
        raise FileNotFoundError(str(target))

    command = _reveal_command(target)
    if command is None:
        logger.error(
            "Attempting to reveal path on an unknown system", path=str(target)
        )
        return False

    await _launch(command)
    return True
