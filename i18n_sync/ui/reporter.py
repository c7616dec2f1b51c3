"""
Event reporting for i18n sync.

SyncEvents is the sink the orchestrator reports into. ConsoleReporter
prints each event as it happens.
"""

import sys
import threading

from ..core.formatting import format_duration
from .colors import Colors, NoColors


class SyncEvents:
    """Event sink with no-op handlers. Subclass and override what you need."""

    def on_upload(self, project: str, locale: str):
        pass

    def on_download(self, project: str, locale: str, etag: str, size: int):
        pass

    def on_not_modified(self, project: str, locale: str):
        pass

    def on_untranslated(self, project: str, locale: str, string_id: str):
        pass

    def on_error(self, error: Exception):
        pass

    def on_skipped_run(self, seconds_since_last: float):
        pass

    def on_finished(self, summary):
        pass


class ConsoleReporter(SyncEvents):
    """Prints sync events to stdout (thread-safe)."""

    def __init__(self, stream=None, color: bool = None):
        self.stream = stream or sys.stdout
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.c = Colors if color else NoColors
        self.lock = threading.Lock()

    def write(self, msg: str):
        """Write a message (thread-safe)."""
        with self.lock:
            print(msg, file=self.stream)

    def on_upload(self, project: str, locale: str):
        c = self.c
        self.write(f"  {c.GREEN}↑{c.RESET} Translations for project {project} for locale {locale} uploaded")

    def on_download(self, project: str, locale: str, etag: str, size: int):
        c = self.c
        self.write(f"  {c.GREEN}↓{c.RESET} Downloaded locale {project}/{locale} {c.DIM}({size} bytes){c.RESET}")

    def on_not_modified(self, project: str, locale: str):
        c = self.c
        self.write(f"  {c.DIM}✓ {project}/{locale} unchanged{c.RESET}")

    def on_untranslated(self, project: str, locale: str, string_id: str):
        c = self.c
        self.write(f"  {c.YELLOW}WARNING!{c.RESET} There is untranslated string {string_id!r} in {project}/{locale}")

    def on_error(self, error: Exception):
        c = self.c
        self.write(f"  {c.RED}ERR:{c.RESET} {error}")

    def on_skipped_run(self, seconds_since_last: float):
        c = self.c
        self.write(f"{c.DIM}Last run was {format_duration(seconds_since_last)} ago, nothing to do{c.RESET}")

    def on_finished(self, summary):
        c = self.c
        parts = [
            f"{summary.uploaded} uploaded",
            f"{summary.downloaded} downloaded",
            f"{summary.not_modified} unchanged",
        ]
        if summary.untranslated:
            parts.append(f"{c.YELLOW}{summary.untranslated} untranslated{c.RESET}")
        if summary.errors:
            parts.append(f"{c.RED}{summary.errors} errors{c.RESET}")
        self.write(f"\n{c.BOLD}Done{c.RESET} in {format_duration(summary.duration)}: {', '.join(parts)}")
