"""
Argument extractors for natural-language input.

Each takes the original (non-normalized) text and returns positional args.
"""

import re
from typing import List

_QUOTED = re.compile(r"[\"'“‘](.+?)[\"'”’]")
_MESSAGE_LABEL = re.compile(r"(?:메시지|message)\s*[:：]?\s*(.+)$", re.IGNORECASE)
_ISSUE_KEY = re.compile(r"\b([A-Za-z][A-Za-z0-9]*-\d+)\b")
_NUMBER = re.compile(r"(?<![\dA-Za-z.-])(\d+)(?![\d.])")
_FILE_PATH = re.compile(r"(?:^|\s)((?:[\w.-]+/)*[\w-]+\.[A-Za-z0-9]{1,8}|(?:[\w.-]+/)+[\w.-]*)(?=\s|$|[,.;!?])")


def extract_quoted(text: str) -> List[str]:
    """Every quoted span, in order."""
    return _QUOTED.findall(text)


def extract_commit_message(text: str) -> List[str]:
    """A commit message from quotes, or from a ``메시지: ...`` / ``message: ...`` label."""
    quoted = extract_quoted(text)
    if quoted:
        return [quoted[0]]

    match = _MESSAGE_LABEL.search(text)
    if match:
        message = match.group(1).strip()
        if message:
            return [message]
    return []


def extract_file_paths(text: str) -> List[str]:
    """Quoted paths plus bare tokens that look like ``dir/file.ext``."""
    paths = [value for value in extract_quoted(text) if "/" in value or "." in value]
    for match in _FILE_PATH.findall(text):
        if match not in paths:
            paths.append(match)
    return paths


def extract_issue_key(text: str) -> List[str]:
    """A ``PROJ-123`` issue key, upper-cased."""
    match = _ISSUE_KEY.search(text)
    return [match.group(1).upper()] if match else []


def extract_number(text: str) -> List[str]:
    """The first standalone integer (e.g. a log count)."""
    match = _NUMBER.search(text)
    return [match.group(1)] if match else []
