"""
File system utilities for i18n sync.
"""

import shutil
import zlib
from pathlib import Path

from ..errors import LocalIOError
from .constants import INVALID_CRC32


def crc32_bytes(data: bytes) -> int:
    """IEEE crc32 of a byte string, as an unsigned 32-bit int."""
    return zlib.crc32(data) & 0xFFFFFFFF


def file_crc32(path: Path) -> int:
    """
    crc32 of a file's content.

    Returns INVALID_CRC32 when the file does not exist or cannot be read,
    so a lost or unreadable file never matches a stored checksum.
    """
    try:
        data = Path(path).read_bytes()
    except OSError:
        return INVALID_CRC32
    return crc32_bytes(data)


def write_locale_file(path: Path, data: bytes):
    """
    Write a locale blob, creating parent folders as needed.

    Raises:
        LocalIOError: folder or file could not be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LocalIOError(f"Unable to create folder {path.parent}: {e}") from e
    try:
        path.write_bytes(data)
    except OSError as e:
        raise LocalIOError(f"Unable to write locale file {path}: {e}") from e


def remove_contents(folder: Path) -> int:
    """
    Delete everything inside a folder, keeping the folder itself.

    Returns:
        Number of top-level entries removed (0 if the folder doesn't exist)
    """
    if not folder.exists():
        return 0

    removed = 0
    try:
        for entry in folder.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
    except OSError as e:
        raise LocalIOError(f"Unable to clean {folder}: {e}") from e
    return removed
