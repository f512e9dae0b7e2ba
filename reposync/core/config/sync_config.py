"""Sync configuration (YAML) parsing and validation.

A sync configuration maps each target repository to the files it receives::

    acme/service-a:
      - .github/workflows/ci.yml
      - source: templates/CODEOWNERS
        dest: .github/CODEOWNERS
"""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from reposync.core.config.loader import parse_mapping
from reposync.core.exceptions.errors import ConfigurationError
from reposync.core.logger.logger import get_logger
from reposync.models.sync import SyncConfig

logger = get_logger(__name__)


def parse_sync_config(text: str) -> SyncConfig:
    """Parse and validate a sync configuration document.

    Args:
        text: YAML document.

    Returns:
        Validated SyncConfig.

    Raises:
        ConfigurationError: If the YAML is invalid or does not match the schema.
    """
    data = parse_mapping(text, "sync configuration")
    if not data:
        raise ConfigurationError("Sync configuration has no targets", config_key="sync_config")

    try:
        return SyncConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid sync configuration",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def load_sync_config(path: Path | str) -> SyncConfig:
    """Read and validate a sync configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated SyncConfig.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            f"Config file not found: {config_path}",
            config_key="config_path",
            details={"path": str(config_path)},
        )

    config = parse_sync_config(config_path.read_text(encoding="utf-8"))
    logger.debug(f"Loaded sync config with {len(config.targets)} target(s) from {config_path}")
    return config
