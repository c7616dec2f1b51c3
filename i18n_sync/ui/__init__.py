"""
Terminal output for i18n sync.
"""

from .colors import Colors, NoColors
from .reporter import SyncEvents, ConsoleReporter

__all__ = [
    "Colors",
    "NoColors",
    "SyncEvents",
    "ConsoleReporter",
]
