"""
Path layout for i18n sync.

    <base>/localized_data/<project>/<locale>.json
    <tempdir>/i18n_gen_run_info.json
"""

import tempfile
from pathlib import Path

from .constants import LOCALIZED_DATA_FOLDER, RUN_INFO_FILE
from .formatting import sanitize_filename


def get_run_info_path() -> Path:
    """Get path to the persisted run-state file."""
    return Path(tempfile.gettempdir()) / RUN_INFO_FILE


def get_localization_folder(base_path: Path) -> Path:
    """Get the folder that holds all downloaded locales."""
    return Path(base_path) / LOCALIZED_DATA_FOLDER


def get_locale_file(base_path: Path, project: str, locale: str) -> Path:
    """Get the file a (project, locale) pair is written to."""
    folder = get_localization_folder(base_path) / sanitize_filename(project)
    return folder / f"{sanitize_filename(locale)}.json"
