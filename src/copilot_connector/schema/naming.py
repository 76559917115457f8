"""Property name normalization.

A single normalizer is used for both schema inference and ingestion
flattening so that a document's keys map onto the names they were
registered under. Only the length cap differs between the two paths.
"""

import re

SCHEMA_NAME_MAX_LENGTH = 32
INGESTION_NAME_MAX_LENGTH = 64
NAME_PREFIX = "field"

_SEGMENT_RE = re.compile(r"[A-Za-z0-9]+")
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def normalize_name(raw_name: str, max_length: int = SCHEMA_NAME_MAX_LENGTH) -> str:
    """Convert an arbitrary key into an alphanumeric camelCase identifier.

    Examples:
        user-name_2!  -> userName2
        Created Date  -> createdDate
        2fa           -> field2fa
        ___           -> field

    The result always matches ^[A-Za-z][A-Za-z0-9]*$ and is at most
    max_length characters long.
    """
    segments = _SEGMENT_RE.findall(raw_name or "")

    name = ""
    for index, segment in enumerate(segments):
        if index == 0:
            name += segment[0].lower() + segment[1:]
        else:
            name += segment[0].upper() + segment[1:]

    if not name or not name[0].isalpha():
        name = NAME_PREFIX + name

    return name[:max_length]


def display_name(raw_name: str) -> str:
    """Human readable label: split into words and title-case them.

    Examples:
        createdDate  -> Created Date
        user_name    -> User Name
        HTTPStatus   -> HTTP Status
    """
    words = [
        word
        for segment in _SEGMENT_RE.findall(raw_name or "")
        for word in _WORD_RE.findall(segment)
    ]
    if not words:
        return raw_name or ""
    return " ".join(word if word.isupper() else word.capitalize() for word in words)
