"""File handler module: encoding-aware read and atomic write.

Provides the file I/O infrastructure used by the local document store.
The sync functions are pure apart from file I/O; async wrappers push the
blocking work onto a worker thread via run_sync().
"""

import os
import tempfile
from pathlib import Path

from charset_normalizer import from_bytes

from gh_discussions_sync.core.async_utils import run_sync

# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    # Files written by the sync engine are always UTF-8; only fall back to
    # detection for hand-edited files in other encodings.
    try:
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        return (raw.decode("utf-8", errors="replace"), "utf-8")
    encoding = result.encoding
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(result), encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content atomically, creating parent directories as needed.

    Writes to a temporary file in the target directory, then replaces the
    target so readers never observe a half-written document.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(encoded)


# =============================================================================
# Async Wrappers
# =============================================================================


async def read_file_async(path: Path) -> tuple[str, str]:
    """Async wrapper around ``read_file_with_encoding``."""
    return await run_sync(read_file_with_encoding, path)


async def write_file_async(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Async wrapper around ``write_file``."""
    return await run_sync(write_file, path, content, encoding)
