"""
Source scanning for i18n sync.

Finds translatable-string declarations like

    api.NewI18nString("greeting_hello")

and turns the collected ids into a base locale blob.
"""

import json
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Set

from ..config import make_locale_key
from ..core.constants import I18N_FUNC_NAME, I18N_SOURCE_SUFFIX, LOCALIZED_DATA_FOLDER
from ..core.formatting import format_duration
from ..errors import ScanError

# Go string literal: interpreted ("...") or raw (`...`)
_LITERAL = r'"(?P<interp>(?:[^"\\\n]|\\.)*)"|`(?P<raw>[^`]*)`'

# Start of a literal or a comment
_TOKEN_START = re.compile(r'["\'`]|//|/\*')

# Go escapes inside an interpreted literal
_ESCAPES = re.compile(
    r'\\(?:(?P<char>[abfnrtv\\"\'])|x(?P<hex>[0-9A-Fa-f]{2})|(?P<oct>[0-7]{3})'
    r'|u(?P<u4>[0-9A-Fa-f]{4})|U(?P<u8>[0-9A-Fa-f]{8}))'
)
_ESCAPE_MAP = {"a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
               "\\": "\\", '"': '"', "'": "'"}


def _call_pattern(func_name: str) -> re.Pattern:
    # Selector call only (pkg.Func), matching how declarations are written
    return re.compile(r"\.\s*" + re.escape(func_name) + r"\s*\(\s*")


def _literal_end(text: str, start: int) -> int:
    """Index just past the quoted literal opening at start."""
    quote = text[start]
    if quote == "`":
        end = text.find("`", start + 1)
        return len(text) if end < 0 else end + 1
    i = start + 1
    while i < len(text) and text[i] != quote and text[i] != "\n":
        i += 2 if text[i] == "\\" else 1
    return min(i + 1, len(text))


def strip_comments(text: str) -> str:
    """
    Blank out // and /* */ comments of Go source.

    Comment markers inside string, raw string and rune literals are left
    alone. Newlines are kept so line numbers still match the input.
    """
    out = []
    pos = 0
    while True:
        match = _TOKEN_START.search(text, pos)
        if not match:
            out.append(text[pos:])
            break
        start = match.start()
        out.append(text[pos:start])
        token = match.group()
        if token == "//":
            end = text.find("\n", start)
            end = len(text) if end < 0 else end
            out.append(" " * (end - start))
        elif token == "/*":
            end = text.find("*/", start + 2)
            end = len(text) if end < 0 else end + 2
            out.append(re.sub(r"[^\n]", " ", text[start:end]))
        else:
            end = _literal_end(text, start)
            out.append(text[start:end])
        pos = end
    return "".join(out)


def _unquote(interp: str) -> str:
    """
    Decode the body of an interpreted Go string literal.

    \\x and octal escapes are single bytes, so the value is assembled as
    UTF-8 and decoded at the end.

    Raises:
        ValueError: unknown escape or the bytes are not valid UTF-8
    """
    buf = bytearray()
    pos = 0
    for m in _ESCAPES.finditer(interp):
        plain = interp[pos:m.start()]
        if "\\" in plain:
            raise ValueError(f"unknown escape in {interp!r}")
        buf += plain.encode("utf-8")
        if m.group("char"):
            buf += _ESCAPE_MAP[m.group("char")].encode("utf-8")
        elif m.group("hex"):
            buf.append(int(m.group("hex"), 16))
        elif m.group("oct"):
            value = int(m.group("oct"), 8)
            if value > 0xFF:
                raise ValueError(f"octal escape out of range in {interp!r}")
            buf.append(value)
        else:
            buf += chr(int(m.group("u4") or m.group("u8"), 16)).encode("utf-8")
        pos = m.end()
    rest = interp[pos:]
    if "\\" in rest:
        raise ValueError(f"unknown escape in {interp!r}")
    buf += rest.encode("utf-8")
    return buf.decode("utf-8")


def extract_ids(text: str, func_name: str = I18N_FUNC_NAME, path: Path = None) -> Set[str]:
    """
    Extract translatable ids from one source file.

    Calls inside comments are not declarations and are ignored.

    Raises:
        ScanError: a call's first argument is not a valid string literal
    """
    text = strip_comments(text)
    literal = re.compile(_LITERAL)
    ids = set()
    for match in _call_pattern(func_name).finditer(text):
        line = text.count("\n", 0, match.start()) + 1
        arg = literal.match(text, match.end())
        if not arg:
            snippet = text[match.end():match.end() + 30].split("\n")[0]
            raise ScanError(
                f"In call {func_name}(id) id should be string literal! Got: {snippet!r} ({path}:{line})",
                path=path,
                line=line,
            )
        if arg.group("raw") is not None:
            ids.add(arg.group("raw"))
            continue
        try:
            ids.add(_unquote(arg.group("interp")))
        except ValueError as e:
            raise ScanError(
                f"Bad string literal in call {func_name}: {e} ({path}:{line})", path=path, line=line
            ) from e
    return ids


def find_source_files(base_path: Path, suffix: str = I18N_SOURCE_SUFFIX) -> List[Path]:
    """Walk base_path for files whose posix path ends with suffix."""
    found = []
    for root, dirs, files in os.walk(base_path):
        dirs[:] = [d for d in dirs if not d.startswith(".") and d != LOCALIZED_DATA_FOLDER]
        for name in files:
            path = Path(root) / name
            if path.as_posix().endswith(suffix):
                found.append(path)
    return sorted(found)


def _scan_file(path: Path, func_name: str) -> Set[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Warning: Could not read {path}: {e}")
        return set()
    return extract_ids(text, func_name, path)


def scan_sources(
    base_path: Path,
    suffix: str = I18N_SOURCE_SUFFIX,
    func_name: str = I18N_FUNC_NAME,
    max_workers: int = 8,
) -> Set[str]:
    """
    Collect ids from every matching file under base_path.

    Each file is scanned by its own task into its own set; the sets are
    merged once all tasks are done.
    """
    files = find_source_files(Path(base_path), suffix)
    if not files:
        return set()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(lambda p: _scan_file(p, func_name), files))

    ids = set()
    for result in results:
        ids |= result
    return ids


def make_locale_json(ids: Iterable[str]) -> str:
    """Render ids as a base locale: each id translates to itself."""
    storage = [{"id": i, "translation": i} for i in sorted(ids)]
    return json.dumps(storage, indent=2, ensure_ascii=False)


class SourceScanner:
    """
    Supplies the base locale to upload.

    The orchestrator calls locales_for_update() once per run.
    """

    def __init__(
        self,
        base_path: Path,
        project: str,
        locale: str,
        suffix: str = I18N_SOURCE_SUFFIX,
        func_name: str = I18N_FUNC_NAME,
        max_workers: int = 8,
    ):
        self.base_path = Path(base_path)
        self.project = project
        self.locale = locale
        self.suffix = suffix
        self.func_name = func_name
        self.max_workers = max_workers

    def locales_for_update(self) -> Dict[str, List[bytes]]:
        """Map of "<project>:<locale>" -> locale blobs to upload."""
        start = time.time()
        ids = scan_sources(self.base_path, self.suffix, self.func_name, self.max_workers)
        data = make_locale_json(ids).encode("utf-8")
        print(f"Localized data was generated in {format_duration(time.time() - start)} ({len(ids)} strings)")
        return {make_locale_key(self.project, self.locale): [data]}
