"""Async file I/O for the generation pipeline."""

from pathlib import Path

import aiofiles

from testforge.shared.domain.exceptions import GenerationIOError
from testforge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


async def read_source(path):
    """
    Read a C# source file.

    utf-8-sig drops the byte order mark Visual Studio writes by default.

    Raises:
        GenerationIOError: If the file cannot be read or decoded
    """
    try:
        async with aiofiles.open(Path(path), encoding="utf-8-sig") as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("source_read_failed", path=str(path), error=str(e), error_type=type(e).__name__)
        raise GenerationIOError(f"Cannot read {path}: {e}", path=str(path), operation="read") from e


async def write_text(path, content: str) -> None:
    """
    Write a generated file, replacing any existing file of the same name.

    Raises:
        GenerationIOError: If the file cannot be written
    """
    try:
        async with aiofiles.open(Path(path), "w", encoding="utf-8") as f:
            await f.write(content)
    except OSError as e:
        logger.warning("test_file_write_failed", path=str(path), error=str(e), error_type=type(e).__name__)
        raise GenerationIOError(f"Cannot write {path}: {e}", path=str(path), operation="write") from e
