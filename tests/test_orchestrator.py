"""
Tests for LocaleSync (the sync run).

Uses fakes for the Phrase client, the downloader and the event sink so the
run's decisions can be checked without a network.
"""

import json

import pytest

from i18n_sync.config import ProjectRegistry, SyncConfig
from i18n_sync.core.files import crc32_bytes, file_crc32
from i18n_sync.core.paths import get_locale_file, get_localization_folder
from i18n_sync.errors import ConfigError, LocalIOError, RemoteError
from i18n_sync.remote.client import LocaleInfo
from i18n_sync.remote.downloader import DownloadResult, ERROR, NOT_MODIFIED, OK
from i18n_sync.scanner.sources import make_locale_json
from i18n_sync.sync.orchestrator import ABORTED_GLOBAL, DONE, LocaleSync
from i18n_sync.sync.state import ChecksumStore
from i18n_sync.ui.reporter import SyncEvents

SECOND = 1_000_000_000
DE_CONTENT = b'[{"id": "hello", "translation": "Hallo"}]'


class FakeClient:
    """Stands in for PhraseClient."""

    def __init__(self, locales=None, fail_list=(), fail_upload=()):
        self.locales = locales or {}
        self.fail_list = set(fail_list)
        self.fail_upload = set(fail_upload)
        self.uploads = []
        self.calls = 0

    def list_locales(self, project_id):
        self.calls += 1
        if project_id in self.fail_list:
            raise RemoteError(f"Unable to get locale list for project {project_id}")
        return list(self.locales.get(project_id, []))

    def upload(self, project_id, locale, content, update_translations=False):
        self.calls += 1
        if (project_id, locale) in self.fail_upload:
            raise RemoteError(f"Upload of {locale} to project {project_id} failed: HTTP 422")
        self.uploads.append((project_id, locale, content, update_translations))


class FakeDownloader:
    """Stands in for LocaleDownloader; responses keyed by (project, locale)."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.tasks = []

    def download_many(self, tasks):
        self.tasks.extend(tasks)
        results = []
        for task in tasks:
            status, content, etag = self.responses.get((task.project, task.locale), (ERROR, b"", ""))
            results.append(DownloadResult(task=task, status=status, content=content, etag=etag,
                                          message=f"{status}: {task.project}/{task.locale}"))
        return results


class FakeSource:
    def __init__(self, locales=None):
        self.locales = locales or {}
        self.calls = 0

    def locales_for_update(self):
        self.calls += 1
        return self.locales


class RecordingEvents(SyncEvents):
    def __init__(self):
        self.uploads = []
        self.downloads = []
        self.not_modified = []
        self.untranslated = []
        self.errors = []
        self.skipped = []

    def on_upload(self, project, locale):
        self.uploads.append((project, locale))

    def on_download(self, project, locale, etag, size):
        self.downloads.append((project, locale, etag))

    def on_not_modified(self, project, locale):
        self.not_modified.append((project, locale))

    def on_untranslated(self, project, locale, string_id):
        self.untranslated.append((project, locale, string_id))

    def on_error(self, error):
        self.errors.append(error)

    def on_skipped_run(self, seconds_since_last):
        self.skipped.append(seconds_since_last)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_sync(
    temp_dir,
    client=None,
    downloader=None,
    source=None,
    projects=None,
    clock=None,
    online=True,
    state_path=None,
    clean=False,
):
    config = SyncConfig(base_path=temp_dir / "repo", clean=clean)
    events = RecordingEvents()
    sync = LocaleSync(
        config=config,
        registry=ProjectRegistry(projects if projects is not None else {"Backend": "pid-backend"}),
        client=client or FakeClient(),
        downloader=downloader or FakeDownloader(),
        store=ChecksumStore(state_path or temp_dir / "run_info.json"),
        source=source or FakeSource(),
        events=events,
        network_check=lambda: (True, None) if online else (False, "No internet connection"),
        clock=clock or Clock(100 * SECOND),
    )
    return sync, events


def backend_locales(*names):
    return {"pid-backend": [LocaleInfo(id=f"id-{n}", name=n) for n in names]}


class TestConnectivity:
    """No connectivity aborts before any work."""

    def test_offline_aborts(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        source = FakeSource({"Backend:en-US": [b"[]"]})
        sync, _ = make_sync(temp_dir, client=client, source=source, online=False)

        summary = sync.run()

        assert summary.state == ABORTED_GLOBAL
        assert client.calls == 0
        assert source.calls == 0
        assert not (temp_dir / "run_info.json").exists()


class TestRateGate:
    """Runs closer together than the minimum interval do nothing."""

    def test_second_run_within_interval_is_noop(self, temp_dir):
        responses = {("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}
        first, _ = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("de")),
            downloader=FakeDownloader(responses),
            clock=Clock(100 * SECOND),
        )
        assert first.run().state == DONE

        state_path = temp_dir / "run_info.json"
        before = state_path.read_bytes()
        before_mtime = state_path.stat().st_mtime_ns

        client = FakeClient(locales=backend_locales("de"))
        downloader = FakeDownloader(responses)
        source = FakeSource({"Backend:en-US": [b"[]"]})
        second, events = make_sync(
            temp_dir, client=client, downloader=downloader, source=source,
            clock=Clock(101 * SECOND),
        )
        summary = second.run()

        assert summary.state == DONE
        assert summary.skipped
        assert client.calls == 0
        assert downloader.tasks == []
        assert source.calls == 0
        assert len(events.skipped) == 1
        assert state_path.read_bytes() == before
        assert state_path.stat().st_mtime_ns == before_mtime

    def test_run_after_interval_proceeds(self, temp_dir):
        first, _ = make_sync(temp_dir, clock=Clock(100 * SECOND))
        first.run()

        client = FakeClient(locales=backend_locales("de"))
        second, _ = make_sync(temp_dir, client=client, clock=Clock(103 * SECOND))
        summary = second.run()

        assert not summary.skipped
        assert client.calls == 1

    def test_last_run_time_updated_even_without_changes(self, temp_dir):
        sync, _ = make_sync(temp_dir, clock=Clock(100 * SECOND))
        sync.run()

        data = json.loads((temp_dir / "run_info.json").read_text())
        assert data["last_run_time"] == 100 * SECOND
        assert data["lst"] == []


class TestUpload:
    """Upload phase."""

    def test_upload_notifies_once(self, temp_dir):
        blob = make_locale_json({"hello": "hello", "bye": "bye"}).encode("utf-8")
        client = FakeClient()
        sync, events = make_sync(
            temp_dir, client=client, source=FakeSource({"Backend:en-US": [blob]}),
        )

        summary = sync.run()

        assert events.uploads == [("Backend", "en-US")]
        assert summary.uploaded == 1
        assert client.uploads == [("pid-backend", "en-US", blob, False)]

    def test_unknown_project_skipped(self, temp_dir):
        client = FakeClient()
        sync, events = make_sync(
            temp_dir,
            client=client,
            source=FakeSource({"Mobile:en-US": [b"[]"], "Backend:en-US": [b"[]"]}),
        )

        sync.run()

        assert events.uploads == [("Backend", "en-US")]
        assert len(events.errors) == 1
        assert "Mobile" in str(events.errors[0])

    def test_malformed_key_skipped(self, temp_dir):
        sync, events = make_sync(temp_dir, source=FakeSource({"Backend": [b"[]"]}))
        sync.run()
        assert events.uploads == []
        assert len(events.errors) == 1

    def test_failed_upload_does_not_stop_siblings(self, temp_dir):
        client = FakeClient(fail_upload={("pid-backend", "en-US")})
        sync, events = make_sync(
            temp_dir,
            client=client,
            source=FakeSource({"Backend:en-US": [b"[]"], "Backend:de": [b"[]"]}),
        )

        summary = sync.run()

        assert events.uploads == [("Backend", "de")]
        assert summary.errors == 1
        assert summary.state == DONE


class TestDownload:
    """Download sweep."""

    def test_fresh_download_creates_record(self, temp_dir):
        """No local file, no record: unconditional fetch, one new record."""
        downloader = FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")})
        sync, events = make_sync(
            temp_dir, client=FakeClient(locales=backend_locales("de")), downloader=downloader,
        )

        summary = sync.run()

        assert downloader.tasks[0].etag is None
        path = get_locale_file(temp_dir / "repo", "Backend", "de")
        assert path.read_bytes() == DE_CONTENT
        records = sync.store.records
        assert len(records) == 1
        assert records[0].etag == "\"e1\""
        assert records[0].crc32 == file_crc32(path)
        assert summary.downloaded == 1
        assert events.downloads == [("Backend", "de", "\"e1\"")]

    def test_redownload_keeps_single_record(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        first, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            clock=Clock(100 * SECOND),
        )
        first.run()

        new_content = b'[{"id": "hello", "translation": "Servus"}]'
        downloader = FakeDownloader({("Backend", "de"): (OK, new_content, "\"e2\"")})
        second, _ = make_sync(temp_dir, client=client, downloader=downloader, clock=Clock(200 * SECOND))
        second.run()

        # Local file untouched since the first run: token was presented
        assert downloader.tasks[0].etag == "\"e1\""
        records = second.store.records
        assert len(records) == 1
        assert records[0].etag == "\"e2\""
        assert records[0].crc32 == crc32_bytes(new_content)

    def test_identical_content_still_stores_new_token(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        first, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            clock=Clock(100 * SECOND),
        )
        first.run()

        second, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e2\"")}),
            clock=Clock(200 * SECOND),
        )
        second.run()

        assert second.store.get_etag("Backend", "de") == "\"e2\""

    def test_not_modified_has_no_side_effects(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        first, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            clock=Clock(100 * SECOND),
        )
        first.run()
        path = get_locale_file(temp_dir / "repo", "Backend", "de")
        mtime = path.stat().st_mtime_ns

        second, events = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (NOT_MODIFIED, b"", "")}),
            clock=Clock(200 * SECOND),
        )
        summary = second.run()

        assert events.not_modified == [("Backend", "de")]
        assert events.downloads == []
        assert summary.not_modified == 1
        assert path.read_bytes() == DE_CONTENT
        assert path.stat().st_mtime_ns == mtime
        assert second.store.get_etag("Backend", "de") == "\"e1\""
        assert second.store.get_crc32("Backend", "de") == crc32_bytes(DE_CONTENT)

    def test_edited_local_file_forces_unconditional_fetch(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        first, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            clock=Clock(100 * SECOND),
        )
        first.run()
        get_locale_file(temp_dir / "repo", "Backend", "de").write_bytes(b"[]")

        downloader = FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")})
        second, _ = make_sync(temp_dir, client=client, downloader=downloader, clock=Clock(200 * SECOND))
        second.run()

        assert downloader.tasks[0].etag is None

    def test_empty_body_ignored(self, temp_dir):
        downloader = FakeDownloader({("Backend", "de"): (OK, b"", "\"e1\"")})
        sync, events = make_sync(
            temp_dir, client=FakeClient(locales=backend_locales("de")), downloader=downloader,
        )

        summary = sync.run()

        assert summary.empty == 1
        assert events.downloads == []
        assert sync.store.records == []
        assert not get_locale_file(temp_dir / "repo", "Backend", "de").exists()

    def test_download_error_reported_and_siblings_continue(self, temp_dir):
        downloader = FakeDownloader({
            ("Backend", "de"): (ERROR, b"", ""),
            ("Backend", "fr"): (OK, b"[]", "\"f1\""),
        })
        sync, events = make_sync(
            temp_dir, client=FakeClient(locales=backend_locales("de", "fr")), downloader=downloader,
        )

        summary = sync.run()

        assert summary.errors == 1
        assert events.downloads == [("Backend", "fr", "\"f1\"")]
        assert sync.store.get_etag("Backend", "de") is None

    def test_listing_failure_skips_only_that_project(self, temp_dir):
        client = FakeClient(
            locales={"pid-web": [LocaleInfo(id="id-de", name="de")]},
            fail_list={"pid-backend"},
        )
        downloader = FakeDownloader({("Web", "de"): (OK, b"[]", "\"w1\"")})
        sync, events = make_sync(
            temp_dir, client=client, downloader=downloader,
            projects={"Backend": "pid-backend", "Web": "pid-web"},
        )

        summary = sync.run()

        assert len(events.errors) == 1
        assert events.downloads == [("Web", "de", "\"w1\"")]
        assert summary.state == DONE

    def test_untranslated_string_warned_once(self, temp_dir):
        content = b'[{"id":"hello","translation":"hello"}]'
        sync, events = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("de")),
            downloader=FakeDownloader({("Backend", "de"): (OK, content, "\"e1\"")}),
        )

        summary = sync.run()

        assert events.untranslated == [("Backend", "de", "hello")]
        assert summary.untranslated == 1
        assert summary.errors == 0

    def test_unparsable_content_reported_but_kept(self, temp_dir):
        sync, events = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("de")),
            downloader=FakeDownloader({("Backend", "de"): (OK, b"not json", "\"e1\"")}),
        )

        sync.run()

        assert len(events.errors) == 1
        assert sync.store.get_etag("Backend", "de") == "\"e1\""

    def test_unwritable_output_is_fatal(self, temp_dir):
        repo = temp_dir / "repo"
        repo.mkdir()
        (repo / "localized_data").write_text("a file, not a folder")
        sync, _ = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("de")),
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
        )

        with pytest.raises(LocalIOError):
            sync.run()
        assert not (temp_dir / "run_info.json").exists()


class TestClean:
    """--clean empties localized_data before the sweep."""

    def test_clean_removes_files_and_refetches_unconditionally(self, temp_dir):
        client = FakeClient(locales=backend_locales("de"))
        first, _ = make_sync(
            temp_dir, client=client,
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            clock=Clock(100 * SECOND),
        )
        first.run()

        folder = get_localization_folder(temp_dir / "repo")
        stale = folder / "Backend" / "old.json"
        stale.write_bytes(b"[]")
        (folder / "Retired").mkdir()
        (folder / "Retired" / "de.json").write_bytes(b"[]")

        new_content = b'[{"id": "hello", "translation": "Servus"}]'
        downloader = FakeDownloader({("Backend", "de"): (OK, new_content, "\"e2\"")})
        second, _ = make_sync(
            temp_dir, client=client, downloader=downloader,
            clock=Clock(200 * SECOND), clean=True,
        )
        summary = second.run()

        assert summary.state == DONE
        # Checksum no longer matches a file on disk, so no token is presented
        assert downloader.tasks[0].etag is None
        assert not stale.exists()
        assert not (folder / "Retired").exists()
        assert sorted(p.name for p in folder.iterdir()) == ["Backend"]
        assert get_locale_file(temp_dir / "repo", "Backend", "de").read_bytes() == new_content
        assert second.store.get_etag("Backend", "de") == "\"e2\""

    def test_without_clean_files_are_kept(self, temp_dir):
        folder = get_localization_folder(temp_dir / "repo")
        stray = folder / "Backend" / "old.json"
        stray.parent.mkdir(parents=True)
        stray.write_bytes(b"[]")

        sync, _ = make_sync(temp_dir)
        sync.run()

        assert stray.exists()


class TestLocaleFileCollisions:
    """Remote names that sanitize to the same file name."""

    def test_second_name_for_same_file_is_reported(self, temp_dir):
        downloader = FakeDownloader({
            ("Backend", "zh-Hant"): (OK, b"[]", "\"a\""),
            ("Backend", "zh/Hant"): (OK, DE_CONTENT, "\"b\""),
        })
        sync, events = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("zh-Hant", "zh/Hant")),
            downloader=downloader,
        )

        summary = sync.run()

        assert [t.locale for t in downloader.tasks] == ["zh-Hant"]
        assert summary.errors == 1
        assert isinstance(events.errors[0], ConfigError)
        assert "zh/Hant" in str(events.errors[0])
        assert get_locale_file(temp_dir / "repo", "Backend", "zh-Hant").read_bytes() == b"[]"
        assert sync.store.get_etag("Backend", "zh/Hant") is None
        assert summary.state == DONE

    def test_distinct_names_in_different_projects(self, temp_dir):
        client = FakeClient(locales={
            "pid-backend": [LocaleInfo(id="b-de", name="de")],
            "pid-web": [LocaleInfo(id="w-de", name="de")],
        })
        downloader = FakeDownloader()
        sync, events = make_sync(
            temp_dir, client=client, downloader=downloader,
            projects={"Backend": "pid-backend", "Web": "pid-web"},
        )

        sync.run()

        assert [(t.project, t.locale) for t in downloader.tasks] == [("Backend", "de"), ("Web", "de")]
        assert not any(isinstance(e, ConfigError) for e in events.errors)


class TestSaveState:
    """State persistence at the end of a run."""

    def test_save_failure_reported_not_fatal(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("a file, not a folder")
        sync, events = make_sync(
            temp_dir,
            client=FakeClient(locales=backend_locales("de")),
            downloader=FakeDownloader({("Backend", "de"): (OK, DE_CONTENT, "\"e1\"")}),
            state_path=blocker / "run_info.json",
        )

        summary = sync.run()

        assert summary.state == DONE
        assert len(events.errors) == 1
        assert get_locale_file(temp_dir / "repo", "Backend", "de").read_bytes() == DE_CONTENT
