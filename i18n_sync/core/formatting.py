"""
Formatting and sanitization utilities for i18n sync.
"""

import unicodedata


# ============================================================================
# Filename sanitization (cross-platform)
# ============================================================================

# Illegal characters mapped to safe alternatives
ILLEGAL_CHAR_MAP = {
    "<": "-",
    ">": "-",
    ":": "-",
    '"': "'",
    "\\": "-",
    "/": "-",
    "|": "-",
    "?": "",
    "*": "",
}

# Control characters (0x00-0x1F) and DEL (0x7F)
CONTROL_CHARS = set(chr(i) for i in range(32)) | {chr(127)}


def sanitize_filename(filename: str) -> str:
    """
    Make a project or locale name safe to use as a path component.

    Locale names come from the remote service, so anything that could escape
    the output folder ("/", "..") or is illegal on Windows is replaced.
    """
    if not filename:
        return "_"

    filename = unicodedata.normalize("NFC", filename)

    result = []
    for char in filename:
        if char in ILLEGAL_CHAR_MAP:
            result.append(ILLEGAL_CHAR_MAP[char])
        elif char in CONTROL_CHARS:
            result.append("_")
        else:
            result.append(char)
    filename = "".join(result)

    # Strip trailing dots and spaces ("..", "." collapse to empty)
    filename = filename.rstrip(". ")

    if not filename:
        filename = "_"

    return filename


# ============================================================================
# Duration formatting
# ============================================================================

def format_duration(seconds: float) -> str:
    """Format seconds as human readable duration."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    else:
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"
