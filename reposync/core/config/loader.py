"""YAML mapping loader shared by settings overlays and sync configurations."""

from pathlib import Path
from typing import Any

import yaml

from reposync.core.exceptions.errors import ConfigurationError


def parse_mapping(text: str, source: str) -> dict[str, Any]:
    """Parse a YAML document whose top level must be a mapping.

    Args:
        text: YAML document.
        source: Name used in error messages (a path or a description).

    Returns:
        The mapping; an empty document yields ``{}``.

    Raises:
        ConfigurationError: If the YAML is invalid or not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {source}",
            config_key=source,
            details={"error": str(e)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{source} must contain a mapping, got {type(data).__name__}",
            config_key=source,
        )
    return data


class ConfigLoader:
    """Reads a settings overlay and answers dotted-key lookups against it."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path
        self._data: dict[str, Any] = {}

    def load(self, path: Path | None = None) -> dict[str, Any]:
        """Read the overlay file.

        Args:
            path: File to read instead of ``config_path``.

        Returns:
            The parsed mapping, or ``{}`` when no path is configured.

        Raises:
            ConfigurationError: If the file is missing or malformed.
        """
        source = path or self.config_path
        if not source:
            return {}

        try:
            text = Path(source).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {source}",
                config_key=str(source),
                details={"path": str(source)},
            ) from e

        self._data = parse_mapping(text, str(source))
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Look up ``key`` in the loaded overlay, e.g. ``github.api_url``."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_section(self, section: str) -> dict[str, Any]:
        """Return a top-level section, or ``{}`` if it is absent or not a mapping."""
        value = self._data.get(section)
        return value if isinstance(value, dict) else {}

    @property
    def config(self) -> dict[str, Any]:
        return self._data
