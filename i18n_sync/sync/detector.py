"""
Change detection for i18n sync.

Decides whether the cache token stored for a (project, locale) may be sent
to the translation service.
"""

from pathlib import Path
from typing import Optional

from ..core.constants import INVALID_CRC32
from ..core.files import file_crc32
from ..core.paths import get_locale_file
from .state import ChecksumStore


class ChangeDetector:
    """
    Compares local locale files against the checksums of the last sync.

    A stored ETag was issued for the exact bytes we wrote. If the file has
    since been edited or deleted, presenting that ETag could get a
    "not modified" answer for content we no longer have, so it is dropped
    and the download becomes unconditional.
    """

    def __init__(self, store: ChecksumStore, base_path: Path):
        self.store = store
        self.base_path = Path(base_path)

    def local_crc32(self, project: str, locale: str) -> int:
        """crc32 of the local locale file (INVALID_CRC32 if missing)."""
        return file_crc32(get_locale_file(self.base_path, project, locale))

    def should_trust_cache(self, project: str, locale: str) -> Optional[str]:
        """
        Get the cache token to send with a conditional download.

        Returns:
            Stored ETag if the local file is unchanged since it was synced,
            otherwise None
        """
        stored = self.store.get_crc32(project, locale)
        if stored == INVALID_CRC32:
            return None
        if stored != self.local_crc32(project, locale):
            return None
        return self.store.get_etag(project, locale)
