"""
Sync orchestration for i18n sync.

Drives one run: upload the base locale, download every remote locale that
changed, persist checksums.

    START -> LOAD_STATE -> RATE_GATE -> UPLOAD -> DOWNLOAD_SWEEP -> SAVE_STATE -> DONE
      \\-> ABORTED_GLOBAL (no connectivity)
    RATE_GATE -> DONE (last run too recent)
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..config import ProjectRegistry, SyncConfig, parse_locale_key
from ..core.files import crc32_bytes, remove_contents, write_locale_file
from ..core.paths import get_locale_file, get_localization_folder
from ..errors import ConfigError, RemoteError, StateError
from ..remote.downloader import DownloadResult, DownloadTask, NOT_MODIFIED, OK
from ..remote.network import check_network
from ..ui.reporter import SyncEvents
from .detector import ChangeDetector
from .state import ChecksumStore
from .verify import find_untranslated

# Run states
START = "START"
LOAD_STATE = "LOAD_STATE"
RATE_GATE = "RATE_GATE"
UPLOAD = "UPLOAD"
DOWNLOAD_SWEEP = "DOWNLOAD_SWEEP"
SAVE_STATE = "SAVE_STATE"
DONE = "DONE"
ABORTED_GLOBAL = "ABORTED_GLOBAL"


@dataclass
class SyncSummary:
    """Outcome of one run."""
    state: str = START
    skipped: bool = False  # Rate gate ended the run
    uploaded: int = 0
    downloaded: int = 0
    not_modified: int = 0
    empty: int = 0
    untranslated: int = 0
    errors: int = 0
    duration: float = 0.0
    abort_reason: str = ""

    @property
    def ok(self) -> bool:
        return self.state == DONE


class LocaleSync:
    """
    Synchronizes the base locale up and every locale down.

    Collaborators are passed in:
        client      list_locales(project_id), upload(project_id, locale, content, update_translations)
        downloader  download_many(tasks) -> results
        source      locales_for_update() -> {"project:locale": [blob, ...]}
        events      SyncEvents sink
    """

    def __init__(
        self,
        config: SyncConfig,
        registry: ProjectRegistry,
        client,
        downloader,
        store: ChecksumStore,
        source,
        events: Optional[SyncEvents] = None,
        network_check: Callable[[], Tuple[bool, Optional[str]]] = check_network,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.config = config
        self.registry = registry
        self.client = client
        self.downloader = downloader
        self.store = store
        self.source = source
        self.events = events or SyncEvents()
        self.network_check = network_check
        self.clock = clock
        self.detector = ChangeDetector(store, config.base_path)
        self.summary = SyncSummary()

    def _report(self, error: Exception):
        self.summary.errors += 1
        self.events.on_error(error)

    def run(self) -> SyncSummary:
        """
        Run one sync.

        Raises:
            LocalIOError: the output tree could not be written
        """
        self.summary = SyncSummary(state=START)
        start = time.time()

        is_online, network_error = self.network_check()
        if not is_online:
            self.summary.state = ABORTED_GLOBAL
            self.summary.abort_reason = network_error or "No internet connection"
            return self.summary

        self.summary.state = LOAD_STATE
        self.store.load()

        self.summary.state = RATE_GATE
        elapsed = self.clock() - self.store.last_run_time
        if elapsed <= self.config.min_run_interval_ns:
            self.summary.skipped = True
            self.summary.state = DONE
            self.events.on_skipped_run(max(elapsed, 0) / 1e9)
            return self.summary

        if self.config.clean:
            remove_contents(get_localization_folder(self.config.base_path))

        self.summary.state = UPLOAD
        self.upload_locales()

        self.summary.state = DOWNLOAD_SWEEP
        self.download_locales()

        self.summary.state = SAVE_STATE
        self.store.mark_run(self.clock())
        try:
            self.store.save()
        except StateError as e:
            self._report(e)

        self.summary.state = DONE
        self.summary.duration = time.time() - start
        self.events.on_finished(self.summary)
        return self.summary

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_locales(self):
        """Upload every base locale blob the source provides."""
        for key, blobs in self.source.locales_for_update().items():
            try:
                project, locale = parse_locale_key(key)
                project_id = self.registry.resolve(project)
            except ConfigError as e:
                self._report(e)
                continue

            for blob in blobs:
                if isinstance(blob, str):
                    blob = blob.encode("utf-8")
                try:
                    self.client.upload(project_id, locale, blob, self.config.update_translations)
                except RemoteError as e:
                    self._report(e)
                    continue
                self.summary.uploaded += 1
                self.events.on_upload(project, locale)

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def plan_downloads(self) -> List[DownloadTask]:
        """
        List remote locales of every project and attach cache tokens.

        Two remote names that map to the same local file are a ConfigError;
        the first one listed keeps the file.
        """
        tasks = []
        claimed = {}
        for project, project_id in self.registry.items():
            try:
                locales = self.client.list_locales(project_id)
            except RemoteError as e:
                self._report(e)
                continue

            for locale in locales:
                path = get_locale_file(self.config.base_path, project, locale.name)
                owner = claimed.setdefault(path, (project, locale.name))
                if owner != (project, locale.name):
                    self._report(ConfigError(
                        f"Locale {project}/{locale.name} maps to {path.name}, "
                        f"already used by {owner[0]}/{owner[1]}"
                    ))
                    continue
                tasks.append(DownloadTask(
                    project=project,
                    project_id=project_id,
                    locale=locale.name,
                    locale_id=locale.id,
                    etag=self.detector.should_trust_cache(project, locale.name),
                ))
        return tasks

    def download_locales(self):
        """Fetch every locale concurrently, then apply results one at a time."""
        tasks = self.plan_downloads()
        for result in self.downloader.download_many(tasks):
            self.apply_result(result)

    def apply_result(self, result: DownloadResult):
        """
        Apply one download result to disk and the checksum store.

        Raises:
            LocalIOError: locale file could not be written
        """
        task = result.task
        if result.status == NOT_MODIFIED:
            self.summary.not_modified += 1
            self.events.on_not_modified(task.project, task.locale)
            return
        if result.status != OK:
            self._report(RemoteError(result.message))
            return
        if not result.content:
            self.summary.empty += 1
            return

        path = get_locale_file(self.config.base_path, task.project, task.locale)
        write_locale_file(path, result.content)
        self.store.upsert(task.project, task.locale, result.etag, crc32_bytes(result.content))
        self.summary.downloaded += 1
        self.events.on_download(task.project, task.locale, result.etag, len(result.content))

        try:
            untranslated = find_untranslated(result.content)
        except ValueError as e:
            self._report(RemoteError(f"Unable to check {task.project}/{task.locale}: {e}"))
            return
        for string_id in untranslated:
            self.summary.untranslated += 1
            self.events.on_untranslated(task.project, task.locale, string_id)
