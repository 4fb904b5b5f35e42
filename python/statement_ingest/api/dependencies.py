"""
API Dependencies

Shared engine, repository and pipeline objects for FastAPI dependency
injection.
"""

from functools import lru_cache

from ..categorizer import TransactionCategorizer
from ..database import create_db_engine
from ..ingestion import StatementIngestor
from ..repository import SQLRepository
from ..settings import IngestionSettings, load_settings
from ..taxonomy import load_categories, load_default_category_id


@lru_cache
def get_settings() -> IngestionSettings:
    return load_settings()


@lru_cache
def get_repository() -> SQLRepository:
    """Repository on the configured database."""
    return SQLRepository(create_db_engine())


def get_categorizer() -> TransactionCategorizer:
    """Categorizer built from the current rule table.

    Built per request so that rule changes apply to the next upload.
    """
    config_dir = get_settings().config_dir
    return TransactionCategorizer.from_config(
        config_dir,
        default_category_id=load_default_category_id(config_dir),
        categories=load_categories(config_dir),
    )


def get_ingestor() -> StatementIngestor:
    return StatementIngestor(
        repository=get_repository(),
        categorizer=get_categorizer(),
        settings=get_settings(),
    )
