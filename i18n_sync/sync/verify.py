"""
Post-download consistency checks for locale files.
"""

import json
from typing import List


def find_untranslated(data: bytes) -> List[str]:
    """
    Find identifiers whose translation is still the identifier itself.

    Args:
        data: Locale blob, a JSON array of {"id", "translation"} objects

    Returns:
        Untranslated ids, in file order

    Raises:
        ValueError: data is not a JSON array of objects
    """
    try:
        entries = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"Locale data is not valid JSON: {e}") from e

    if not isinstance(entries, list):
        raise ValueError("Locale data must be a JSON array")

    untranslated = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Locale entry must be an object, got {type(entry).__name__}")
        if "id" in entry and entry.get("id") == entry.get("translation"):
            untranslated.append(entry["id"])
    return untranslated
