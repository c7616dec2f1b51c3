"""
Locale downloader for i18n sync.

Handles concurrent conditional downloads (If-None-Match / ETag).
Uses asyncio + aiohttp with a bounded number of requests in flight.
"""

import asyncio
import os
import ssl
import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

import aiohttp
import certifi

from .client import PhraseClientConfig, USER_AGENT

# Download outcomes
OK = "ok"
NOT_MODIFIED = "not_modified"
ERROR = "error"


def get_certifi_path() -> str:
    """Get path to certifi CA bundle, handling PyInstaller bundles."""
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        bundled_cert = os.path.join(sys._MEIPASS, 'certifi', 'cacert.pem')
        if os.path.exists(bundled_cert):
            return bundled_cert
    return certifi.where()


@dataclass
class DownloadTask:
    """A locale to fetch."""
    project: str  # Project name (registry key)
    project_id: str
    locale: str  # Locale name (file name)
    locale_id: str
    etag: Optional[str] = None  # Sent as If-None-Match when set


@dataclass
class DownloadResult:
    """Result of a single locale download."""
    task: DownloadTask
    status: str
    content: bytes = b""
    etag: str = ""
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status == OK


def interpret_response(task: DownloadTask, status: int, etag: Optional[str], body: bytes) -> DownloadResult:
    """
    Map an HTTP response to a DownloadResult.

    304 means the remote copy is unchanged relative to the token we sent.
    A 200 without an ETag is an error: we could never skip it next time.
    """
    label = f"{task.project}/{task.locale}"
    if status == 304:
        return DownloadResult(task=task, status=NOT_MODIFIED, message=f"unchanged: {label}")
    if status != 200:
        return DownloadResult(task=task, status=ERROR, message=f"ERR (HTTP {status}): {label}")
    if not etag:
        return DownloadResult(task=task, status=ERROR, message=f"ERR (missing ETag): {label}")
    return DownloadResult(task=task, status=OK, content=body, etag=etag, message=f"OK: {label}")


class LocaleDownloader:
    """
    Async locale downloader.

    Runs every task on one event loop; a semaphore caps how many requests
    are in flight so a hung request only holds up its own slot.
    """

    API_DOWNLOAD = "/v2/projects/{project_id}/locales/{locale_id}/download"

    def __init__(
        self,
        config: PhraseClientConfig,
        max_workers: int = 8,
        max_retries: int = 3,
        timeout: Tuple[int, int] = (10, 120),
    ):
        self.config = config
        self.max_workers = max(1, max_workers)
        self.max_retries = max_retries
        self.timeout = aiohttp.ClientTimeout(connect=timeout[0], sock_read=timeout[1])

    def _get_headers(self, etag: Optional[str]) -> dict:
        headers = {
            "Authorization": f"token {self.config.token}",
            "User-Agent": USER_AGENT,
        }
        if etag:
            headers["If-None-Match"] = etag
        return headers

    def _url(self, task: DownloadTask) -> str:
        path = self.API_DOWNLOAD.format(project_id=task.project_id, locale_id=task.locale_id)
        return self.config.host.rstrip("/") + path

    async def _download_async(
        self,
        session: aiohttp.ClientSession,
        task: DownloadTask,
        semaphore: asyncio.Semaphore,
    ) -> DownloadResult:
        """Download a single locale with retries (async)."""
        label = f"{task.project}/{task.locale}"
        params = {"file_format": self.config.file_format}

        async with semaphore:
            for attempt in range(self.max_retries):
                try:
                    async with session.get(
                        self._url(task), params=params, headers=self._get_headers(task.etag)
                    ) as response:
                        if response.status >= 500 and attempt < self.max_retries - 1:
                            await asyncio.sleep(0.5 * (attempt + 1))
                            continue
                        body = await response.read() if response.status == 200 else b""
                        return interpret_response(task, response.status, response.headers.get("ETag"), body)

                except asyncio.TimeoutError:
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(0.5 * (attempt + 1))
                        continue
                    return DownloadResult(task=task, status=ERROR, message=f"ERR (timeout): {label}")

                except asyncio.CancelledError:
                    raise

                except aiohttp.ClientError as e:
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(0.5 * (attempt + 1))
                        continue
                    return DownloadResult(task=task, status=ERROR, message=f"ERR: {label} - {e}")

            return DownloadResult(
                task=task,
                status=ERROR,
                message=f"ERR: {label} - failed after {self.max_retries} attempts",
            )

    async def _download_many_async(self, tasks: List[DownloadTask]) -> List[DownloadResult]:
        """Internal async implementation of download_many."""
        semaphore = asyncio.Semaphore(self.max_workers)
        ssl_context = ssl.create_default_context(cafile=get_certifi_path())
        connector = aiohttp.TCPConnector(
            limit=self.max_workers,
            limit_per_host=self.max_workers,
            ttl_dns_cache=300,
            ssl=ssl_context,
        )

        async with aiohttp.ClientSession(timeout=self.timeout, connector=connector) as session:
            return await asyncio.gather(
                *(self._download_async(session, task, semaphore) for task in tasks)
            )

    def download_many(self, tasks: List[DownloadTask]) -> List[DownloadResult]:
        """
        Download locales concurrently.

        Returns:
            One result per task, in task order
        """
        if not tasks:
            return []
        return list(asyncio.run(self._download_many_async(tasks)))
