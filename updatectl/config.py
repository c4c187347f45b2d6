"""Loading and bootstrapping of updatectl.yaml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import ConfigurationError
from .models import UpdatectlConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """\
intervalMinutes: 10
projects:
  - name: example
    path: /srv/example
    repo: https://github.com/user/example.git
    type: docker
    buildCommand: docker compose up -d --build
"""


def parse_config(text: str, source: str = "<string>") -> UpdatectlConfig:
    """Parse and validate YAML configuration text.

    Args:
        text: YAML document
        source: Name used in error messages

    Returns:
        Validated UpdatectlConfig

    Raises:
        ConfigurationError: If the YAML is malformed or fails validation
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source} must contain a mapping at the top level")

    try:
        return UpdatectlConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration in {source}: {problems}") from e


def load_config(path: Path) -> UpdatectlConfig:
    """Read updatectl.yaml from ``path``.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to read config {path}: {e}") from e

    config = parse_config(text, source=str(path))
    logger.debug(f"Loaded {len(config.projects)} projects from {path}")
    return config


def write_default_config(path: Path) -> bool:
    """Create ``path`` with an example configuration unless it already exists.

    Returns:
        True if a new file was written, False if one was already there
    """
    path = Path(path)
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to write config {path}: {e}") from e
    logger.info(f"Created default config at {path}")
    return True
