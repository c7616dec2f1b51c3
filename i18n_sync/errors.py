"""
Exceptions raised by i18n sync.

Remote and config errors are per unit of work: the orchestrator catches them
and reports them through the event sink. LocalIOError is run-fatal.
"""


class SyncError(Exception):
    """Base class for all i18n sync errors."""


class ConfigError(SyncError):
    """Missing or inconsistent configuration (e.g. unknown project name)."""


class RemoteError(SyncError):
    """Transport failure or unexpected response from the translation service."""


class LocalIOError(SyncError):
    """Local output tree could not be written."""


class StateError(SyncError):
    """Run-state file could not be persisted."""


class ScanError(SyncError):
    """Source tree contains an invalid translatable-string declaration."""

    def __init__(self, message: str, path=None, line: int = 0):
        super().__init__(message)
        self.path = path
        self.line = line
