"""
Core utilities for i18n sync.

Shared constants, path layout, and file helpers.
"""

from .constants import INVALID_CRC32, LOCALIZED_DATA_FOLDER, GLOBAL_RUN_DELAY_NS
from .files import crc32_bytes, file_crc32, remove_contents, write_locale_file
from .formatting import format_duration, sanitize_filename
from .paths import get_localization_folder, get_locale_file, get_run_info_path

__all__ = [
    "INVALID_CRC32",
    "LOCALIZED_DATA_FOLDER",
    "GLOBAL_RUN_DELAY_NS",
    "crc32_bytes",
    "file_crc32",
    "remove_contents",
    "write_locale_file",
    "format_duration",
    "sanitize_filename",
    "get_localization_folder",
    "get_locale_file",
    "get_run_info_path",
]
