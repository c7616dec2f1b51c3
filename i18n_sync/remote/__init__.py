"""
Translation service interaction module.

Handles locale listing, uploads, conditional downloads, and connectivity.
"""

from .client import PhraseClient, PhraseClientConfig, LocaleInfo
from .downloader import LocaleDownloader, DownloadTask, DownloadResult
from .network import check_network

__all__ = [
    "PhraseClient",
    "PhraseClientConfig",
    "LocaleInfo",
    "LocaleDownloader",
    "DownloadTask",
    "DownloadResult",
    "check_network",
]
