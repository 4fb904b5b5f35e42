"""
Category Taxonomy

Loads the system categories and default sources from config/categories.yaml.
"""

import logging
from pathlib import Path

from .models import Category, Source
from .settings import load_yaml, resolve_config_dir

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_ID = "other"


def _load(config_dir: Path | str | None) -> dict:
    return load_yaml(resolve_config_dir(config_dir) / "categories.yaml")


def load_categories(config_dir: Path | str | None = None) -> list[Category]:
    """Load the system category taxonomy.

    Args:
        config_dir: Configuration directory

    Returns:
        Categories in configured order
    """
    data = _load(config_dir)
    categories = [
        Category(
            id=entry["id"],
            display_name=entry.get("display_name", entry["id"].title()),
            color_token=entry.get("color", "#6B7280"),
            icon_token=entry.get("icon", "package"),
            is_system=True,
        )
        for entry in data.get("categories", [])
    ]
    logger.info(f"Loaded {len(categories)} categories")
    return categories


def load_default_category_id(config_dir: Path | str | None = None) -> str:
    """Category assigned when no rule matches."""
    return _load(config_dir).get("default_category", DEFAULT_CATEGORY_ID)


def load_sources(config_dir: Path | str | None = None) -> list[Source]:
    """Load the default sources seeded at startup."""
    return [
        Source(
            id=entry["id"],
            name=entry.get("name", entry["id"]),
            type=entry.get("type", "credit_card"),
            last_four=entry.get("last_four"),
            bank_name=entry.get("bank_name"),
        )
        for entry in _load(config_dir).get("sources", [])
    ]
