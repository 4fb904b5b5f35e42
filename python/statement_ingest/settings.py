"""
Ingestion Settings

Loads ingestion settings from config/ingestion.yaml with environment
overrides.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .extractors.delimited import PositionalLayout

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """Return the configuration directory to use."""
    if config_dir:
        return Path(config_dir)
    return Path(os.getenv("STATEMENT_CONFIG_DIR", DEFAULT_CONFIG_DIR))


def load_yaml(path: Path) -> dict:
    """Load a YAML mapping, or an empty dict if the file is missing."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@dataclass
class IngestionSettings:
    """Settings for one ingestion pipeline."""

    config_dir: Path = DEFAULT_CONFIG_DIR
    preview_size: int = 5
    max_file_size_mb: int = 20
    upload_dir: Path = field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "statement_uploads"
    )
    positional_layout: PositionalLayout = field(default_factory=PositionalLayout)

    @property
    def max_file_size(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


def load_settings(config_dir: Path | str | None = None) -> IngestionSettings:
    """Load settings from ingestion.yaml and the environment.

    Args:
        config_dir: Configuration directory (defaults to the repo config dir)

    Returns:
        IngestionSettings
    """
    config_dir = resolve_config_dir(config_dir)
    data = load_yaml(config_dir / "ingestion.yaml")

    settings = IngestionSettings(config_dir=config_dir)

    if data.get("preview_size") is not None:
        settings.preview_size = int(data["preview_size"])
    if data.get("max_file_size_mb") is not None:
        settings.max_file_size_mb = int(data["max_file_size_mb"])
    if data.get("upload_dir"):
        settings.upload_dir = Path(data["upload_dir"])
    settings.positional_layout = PositionalLayout.from_dict(data.get("positional_layout"))

    upload_dir = os.getenv("STATEMENT_UPLOAD_DIR")
    if upload_dir:
        settings.upload_dir = Path(upload_dir)

    return settings
