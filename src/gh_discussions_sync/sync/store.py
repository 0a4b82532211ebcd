"""Local document store.

Each discussion lives in exactly one file, ``{folder}/discussion-{number}.md``.
The file itself is the only sync state: there is no side database, the
metadata block carries the ``lastSynced`` watermark.

Writes are atomic (temp file then ``os.replace()``), so a crash never
leaves a half-written document behind.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gh_discussions_sync.file_handler import read_file_async, write_file_async

logger = logging.getLogger(__name__)

FILE_PREFIX = "discussion-"
FILE_SUFFIX = ".md"


class DocumentStore:
    """Read and write persisted discussion documents.

    Args:
        folder: Directory holding the documents. Created on first write.
    """

    def __init__(self, folder: Path | str) -> None:
        self._folder = Path(folder)

    @property
    def folder(self) -> Path:
        return self._folder

    def path_for(self, number: int) -> Path:
        """Return the document path for discussion *number*."""
        return self._folder / f"{FILE_PREFIX}{number}{FILE_SUFFIX}"

    async def read_document(self, number: int) -> str | None:
        """Return the document text, or ``None`` if there is no file."""
        path = self.path_for(number)
        try:
            content, encoding = await read_file_async(path)
        except FileNotFoundError:
            return None
        if encoding != "utf-8":
            logger.debug("Read %s as %s", path, encoding)
        return content

    async def write_document(self, number: int, content: str) -> Path:
        """Atomically replace the document for *number* with *content*."""
        path = self.path_for(number)
        written = await write_file_async(path, content)
        logger.debug("Wrote %s (%d bytes)", path, written)
        return path

    def list_numbers(self) -> list[int]:
        """Return the discussion numbers that have a local document, sorted."""
        if not self._folder.is_dir():
            return []
        numbers: list[int] = []
        for entry in self._folder.glob(f"{FILE_PREFIX}*{FILE_SUFFIX}"):
            stem = entry.name[len(FILE_PREFIX) : -len(FILE_SUFFIX)]
            if stem.isdigit():
                numbers.append(int(stem))
        return sorted(numbers)
