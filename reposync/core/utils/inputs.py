"""
Input normalization helpers for CLI options and environment variables.

Values arrive as loosely formatted strings (action inputs, env vars):
- booleans as true/false, 1/0 or yes/no
- lists as newline separated text
- topics as comma or newline separated text
- PR tags as a JSON array or newline separated text
"""

import json
from collections.abc import Iterable
from typing import Any

DEFAULT_CONFIG_PATH = ".github/sync.yml"

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


def str_or_none(value: Any) -> str | None:
    """Convert a value to a stripped string, or None when empty.

    Args:
        value: Raw input value.

    Returns:
        Stripped string or None.
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_bool(value: Any) -> bool | None:
    """Parse a boolean from its common string spellings.

    Args:
        value: Raw input value.

    Returns:
        True/False, or None when the value is empty or unrecognised.
    """
    if isinstance(value, bool):
        return value
    text = str_or_none(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def trim_and_filter(items: Iterable[Any]) -> list[str]:
    """Strip each item and drop the empty ones."""
    result = []
    for item in items:
        text = "" if item is None else str(item).strip()
        if text:
            result.append(text)
    return result


def parse_newline_list(value: Any) -> list[str]:
    """Parse a newline separated list.

    Args:
        value: Raw input value.

    Returns:
        List of non-empty, stripped entries.
    """
    text = str_or_none(value)
    if text is None:
        return []
    return trim_and_filter(text.split("\n"))


def parse_topic_list(value: Any) -> list[str]:
    """Parse topics given as a sequence or as comma/newline separated text.

    Args:
        value: Raw input value.

    Returns:
        List of topics.
    """
    if isinstance(value, (list, tuple)):
        return trim_and_filter(value)
    text = str_or_none(value)
    if text is None:
        return []
    return trim_and_filter(text.replace(",", "\n").split("\n"))


def parse_pr_tags(value: Any) -> list[str]:
    """Parse PR labels given as a JSON array or as newline separated text.

    Args:
        value: Raw input value.

    Returns:
        List of labels.
    """
    text = str_or_none(value)
    if text is None:
        return []

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, list):
        return trim_and_filter(parsed)

    return trim_and_filter(text.split("\n"))


def dedupe_strings(items: Iterable[str]) -> list[str]:
    """Remove duplicates while preserving first-seen order."""
    return list(dict.fromkeys(items))


def resolve_config_path(config_path: str | None) -> str:
    """Return the sync config path, defaulting to ``.github/sync.yml``.

    Args:
        config_path: Explicit path, possibly empty.

    Returns:
        Path to use.
    """
    return str_or_none(config_path) or DEFAULT_CONFIG_PATH
