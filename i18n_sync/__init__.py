"""
i18n sync - Keep source-declared translation ids in sync with Phrase.

Scans the source tree for translatable ids, uploads them as the base locale,
and downloads every project locale into localized_data/.

Import from submodules directly:
    from i18n_sync.config import SyncConfig, ProjectRegistry
    from i18n_sync.remote import PhraseClient, LocaleDownloader
    from i18n_sync.scanner import SourceScanner
    from i18n_sync.sync import ChecksumStore, LocaleSync
    from i18n_sync.ui import ConsoleReporter
"""


def _get_version():
    """Read version from VERSION file."""
    from pathlib import Path
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "0.0.0"


__version__ = _get_version()
