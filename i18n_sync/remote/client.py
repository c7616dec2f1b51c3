"""
Phrase API client for i18n sync.

Handles locale listing and uploads. Downloads go through LocaleDownloader.
"""

import time
from dataclasses import dataclass
from typing import List

import requests

from ..errors import RemoteError

USER_AGENT = "i18n-sync (+https://github.com/junolab/i18n-sync)"


@dataclass
class PhraseClientConfig:
    """Configuration for PhraseClient."""
    token: str
    host: str = "https://api.phrase.com"
    per_page: int = 25
    file_format: str = "go_i18n"
    timeout: int = 60
    max_retries: int = 3


@dataclass
class LocaleInfo:
    """A locale as listed by the remote project."""
    id: str
    name: str
    code: str = ""
    default: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "LocaleInfo":
        return cls(
            id=data["id"],
            name=data.get("name") or data.get("code") or data["id"],
            code=data.get("code", ""),
            default=bool(data.get("default", False)),
        )


class PhraseClient:
    """
    Phrase v2 API client.

    Lists project locales and uploads locale files.
    Does NOT handle downloads (see LocaleDownloader for that).
    """

    API_LOCALES = "/v2/projects/{project_id}/locales"
    API_UPLOADS = "/v2/projects/{project_id}/uploads"

    def __init__(self, config: PhraseClientConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    def _get_headers(self) -> dict:
        """Get request headers."""
        return {
            "Authorization": f"token {self.config.token}",
            "User-Agent": USER_AGENT,
        }

    def _url(self, path: str) -> str:
        return self.config.host.rstrip("/") + path

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """Make a request, retrying timeouts and 5xx responses."""
        timeout = kwargs.pop("timeout", self.config.timeout)

        for attempt in range(self.config.max_retries):
            try:
                response = self.session.request(method, url, timeout=timeout, **kwargs)
                response.raise_for_status()
                return response
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError):
                if attempt < self.config.max_retries - 1:
                    time.sleep(2 ** attempt)
                    continue
                raise
            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else 0
                if (status >= 500 or status == 429) and attempt < self.config.max_retries - 1:
                    time.sleep(2 ** attempt)
                    continue
                raise

        raise RuntimeError(f"Request failed after {self.config.max_retries} attempts")

    def list_locales(self, project_id: str) -> List[LocaleInfo]:
        """
        List all locales of a project.

        Pages are requested until one comes back shorter than per_page.

        Args:
            project_id: Remote project id

        Returns:
            Locales of every page, in order

        Raises:
            RemoteError: any page failed
        """
        url = self._url(self.API_LOCALES.format(project_id=project_id))
        per_page = self.config.per_page
        all_locales = []
        page = 1

        while True:
            try:
                response = self._request_with_retry(
                    "GET", url,
                    params={"page": page, "per_page": per_page},
                    headers=self._get_headers(),
                )
                items = response.json()
                all_locales.extend(LocaleInfo.from_dict(item) for item in items)
            except requests.exceptions.RequestException as e:
                raise RemoteError(f"Unable to get locale list for project {project_id}: {e}") from e
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise RemoteError(
                    f"Unexpected locale list for project {project_id} (page {page}): {e}"
                ) from e

            if len(items) < per_page:
                break
            page += 1

        return all_locales

    def upload(self, project_id: str, locale: str, content: bytes, update_translations: bool = False):
        """
        Upload a locale file to a project.

        Args:
            project_id: Remote project id
            locale: Locale name or id the file is uploaded into
            content: Locale blob
            update_translations: Allow the upload to overwrite existing translations

        Raises:
            RemoteError: transport failure or non-2xx response
        """
        url = self._url(self.API_UPLOADS.format(project_id=project_id))
        data = {
            "locale_id": locale,
            "update_translations": "true" if update_translations else "false",
            "file_format": self.config.file_format,
            "utf8": "✓",
        }
        files = {"file": (f"{locale}.json", content, "application/json")}

        try:
            # Uploads are not idempotent on the remote side, so no retry
            response = self.session.post(
                url, data=data, files=files,
                headers=self._get_headers(),
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteError(f"Unable to upload {locale} to project {project_id}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RemoteError(
                f"Upload of {locale} to project {project_id} failed: HTTP {response.status_code}"
            )
