"""
Pytest configuration and fixtures for statement ingestion tests.
"""

import sys
from pathlib import Path

import pytest

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

from statement_ingest.categorizer import TransactionCategorizer
from statement_ingest.database import create_db_engine
from statement_ingest.ingestion import StatementIngestor
from statement_ingest.repository import SQLRepository
from statement_ingest.settings import IngestionSettings, load_settings
from statement_ingest.taxonomy import load_categories, load_sources


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def engine(tmp_path: Path):
    """SQLite engine on a temporary database file."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'statements.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine, config_dir: Path) -> SQLRepository:
    """Repository with schema, categories and sources in place."""
    repo = SQLRepository(engine)
    repo.create_schema()
    repo.seed_categories(load_categories(config_dir))
    repo.seed_sources(load_sources(config_dir))
    return repo


@pytest.fixture
def settings(tmp_path: Path, config_dir: Path) -> IngestionSettings:
    """Settings using the repo config and a temporary upload directory."""
    settings = load_settings(config_dir)
    settings.upload_dir = tmp_path / "uploads"
    return settings


@pytest.fixture
def categorizer(config_dir: Path) -> TransactionCategorizer:
    """Categorizer with the configured rule table."""
    return TransactionCategorizer.from_config(config_dir)


@pytest.fixture
def ingestor(repository, categorizer, settings) -> StatementIngestor:
    """Ingestor wired to the temporary repository."""
    return StatementIngestor(
        repository=repository,
        categorizer=categorizer,
        settings=settings,
    )


@pytest.fixture
def sample_csv_content() -> bytes:
    """Header-driven CSV export with two card purchases."""
    return (
        b"Date,Description,Amount\n"
        b"07/28/2024,Walmart Supercenter,-89.45\n"
        b"07/27/2024,Shell Gas Station,-45.67"
    )


@pytest.fixture
def sample_pdf_text() -> str:
    """Text as extracted from a one-page PDF statement."""
    return (
        "ACME BANK CREDIT CARD STATEMENT\n"
        "Statement Period 07/01/2024 - 07/31/2024\n"
        "07/28/2024 STARBUCKS #4521 COFFEE $5.75\n"
        "07/15/2024 PAYMENT THANK YOU $500.00\n"
        "Total New Charges $5.75\n"
    )
