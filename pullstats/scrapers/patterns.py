# pullstats/scrapers/patterns.py

"""Version and pull-count token extraction from page text."""

import re

# Optional letter flag starting a word, three dot-separated numbers,
# optional pre-release running to the next whitespace
_VERSION_RE = re.compile(
    r"(?<![A-Za-z0-9])[A-Za-z]?\d+\.\d+\.\d+(?:-\S*)?"
)

# Digits with up to three thousands-separator groups (e.g. "1,234,567")
_COUNT_RE = re.compile(r"\d+(?:,\d+){0,3}")


def extract_version(text: str | None) -> str:
    """Return the version token in *text*, or ``""`` when none matches."""
    if not text:
        return ""
    match = _VERSION_RE.search(text)
    return match.group(0) if match else ""


def extract_count(text: str | None) -> str:
    """Return the first pull count in *text* as a plain digit string.

    ``"  1,234 downloads"`` becomes ``"1234"``; ``""`` when no digits.
    """
    if not text:
        return ""
    match = _COUNT_RE.search(text)
    if not match:
        return ""
    return match.group(0).replace(",", "").strip()
