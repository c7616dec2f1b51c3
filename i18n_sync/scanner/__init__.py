"""
Source scanning module.

Extracts translatable-string ids from the source tree.
"""

from .sources import SourceScanner, extract_ids, find_source_files, make_locale_json, scan_sources, strip_comments

__all__ = [
    "SourceScanner",
    "extract_ids",
    "find_source_files",
    "make_locale_json",
    "scan_sources",
    "strip_comments",
]
