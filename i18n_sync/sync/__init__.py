"""
Sync module.

Checksum state, change detection, and the sync run itself.
"""

from .state import ChecksumRecord, ChecksumStore, RunInfo
from .detector import ChangeDetector
from .verify import find_untranslated
from .orchestrator import LocaleSync, SyncSummary, DONE, ABORTED_GLOBAL

__all__ = [
    # State
    "ChecksumRecord",
    "ChecksumStore",
    "RunInfo",
    # Change detection
    "ChangeDetector",
    # Verification
    "find_untranslated",
    # Orchestration
    "LocaleSync",
    "SyncSummary",
    "DONE",
    "ABORTED_GLOBAL",
]
