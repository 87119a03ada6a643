"""
Normalization for loosely-typed seating input (settings documents, admin payloads).
"""
from typing import Any, List, Optional


def normalize_tags(value: Any) -> List[str]:
    """Trim and lower-case tags, dropping blanks and non-strings."""
    if not isinstance(value, (list, tuple)):
        return []
    tags = []
    for tag in value:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip().lower()
        if cleaned:
            tags.append(cleaned)
    return tags


def normalize_id_list(value: Any) -> Optional[List[str]]:
    """
    Trim ids, drop blanks and duplicates (first occurrence wins).

    Returns None when value is not a list at all so callers can tell
    "absent/malformed" apart from "explicitly empty".
    """
    if not isinstance(value, (list, tuple)):
        return None
    ids: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        cleaned = item.strip()
        if cleaned and cleaned not in ids:
            ids.append(cleaned)
    return ids


def normalize_optional_text(value: Any) -> Optional[str]:
    """Trimmed string, or None for blanks and non-strings."""
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None
