#!/usr/bin/env python3
"""
i18n gen - Sync translatable strings with Phrase.

Scans the source tree for NewI18nString("...") declarations, uploads them as
the base locale, and downloads every locale of every configured project into
<path>/localized_data/<project>/<locale>.json.
"""

import argparse
import os
import sys
from pathlib import Path

# Load .env file if it exists
env_path = Path(__file__).parent / ".env"
if env_path.exists():
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip())

from i18n_sync.config import ProjectRegistry, SyncConfig
from i18n_sync.core.constants import DEFAULT_LOCALE, DEFAULT_PROJECT
from i18n_sync.errors import ConfigError, SyncError
from i18n_sync.remote import LocaleDownloader, PhraseClient, PhraseClientConfig
from i18n_sync.scanner import SourceScanner
from i18n_sync.sync import ABORTED_GLOBAL, ChecksumStore, LocaleSync
from i18n_sync.ui import ConsoleReporter

# ============================================================================
# Configuration
# ============================================================================

PHRASE_TOKEN = os.environ.get("PHRASEAPP_TOKEN", "")
DEFAULT_PATH = "junolab.net"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upload source i18n ids to Phrase and download all locales"
    )
    parser.add_argument("--path", default=DEFAULT_PATH, help="path to micro-services")
    parser.add_argument("--token", default=PHRASE_TOKEN, help="token for Phrase (default: $PHRASEAPP_TOKEN)")
    parser.add_argument("--project", default=DEFAULT_PROJECT, help="default project name")
    parser.add_argument("--locale", default=DEFAULT_LOCALE, help="default locale name")
    parser.add_argument(
        "--project-id",
        action="append",
        default=[],
        metavar="NAME:ID",
        help="pair of project name and Phrase project id, e.g. Backend:abc123 (repeatable)",
    )
    parser.add_argument("--projects-file", type=Path, help="JSON file with {\"projects\": {name: id}}")
    parser.add_argument(
        "--update-translations",
        action="store_true",
        help="let the upload overwrite existing translations",
    )
    parser.add_argument("--workers", type=int, default=8, help="max concurrent downloads")
    parser.add_argument("--state-file", type=Path, help="run-state file (default: temp dir)")
    parser.add_argument(
        "--clean",
        action="store_true",
        help="delete localized_data contents before syncing",
    )
    return parser


def load_registry(args) -> ProjectRegistry:
    """Projects from --projects-file, overridden by --project-id pairs."""
    registry = ProjectRegistry()
    if args.projects_file:
        registry = ProjectRegistry.load(args.projects_file)
    return registry.merged(ProjectRegistry.from_pairs(args.project_id))


def main(argv=None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    if not args.token and not args.path:
        print("All params are empty.")
        return 1
    if not args.token:
        print("Please, specify Phrase token (--token or PHRASEAPP_TOKEN)")
        return 1
    if not args.path:
        print("Please, specify path to micro-services")
        return 1

    try:
        registry = load_registry(args)
    except ConfigError as e:
        print(e)
        return 1

    if args.project not in registry:
        print("Please, specify Phrase project id for default project")
        return 1

    base_path = Path(args.path)
    config = SyncConfig(
        base_path=base_path,
        default_project=args.project,
        default_locale=args.locale,
        update_translations=args.update_translations,
        max_workers=args.workers,
        clean=args.clean,
    )
    client_config = PhraseClientConfig(token=args.token)

    sync = LocaleSync(
        config=config,
        registry=registry,
        client=PhraseClient(client_config),
        downloader=LocaleDownloader(client_config, max_workers=args.workers),
        store=ChecksumStore(args.state_file),
        source=SourceScanner(base_path, config.default_project, config.default_locale, max_workers=args.workers),
        events=ConsoleReporter(),
    )

    try:
        summary = sync.run()
    except SyncError as e:
        print(f"Fatal: {e}")
        return 1

    if summary.state == ABORTED_GLOBAL:
        print(f"There is no internet connection ({summary.abort_reason}).")
    return 0 if summary.ok else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        sys.exit(130)
