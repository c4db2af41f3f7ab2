"""Shared pytest fixtures for qifledger tests."""

import tempfile
import os
from pathlib import Path
import pytest

from qifledger.database.factories import create_sqlite_database
from qifledger.domain.holdings import HoldingsService
from qifledger.domain.lots import LotLedgerService
from qifledger.domain.qif_import import QIFImportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def import_service(temp_db):
    """Create a QIFImportService with a temporary database."""
    return QIFImportService(temp_db)


@pytest.fixture
def lot_service(temp_db):
    """Create a LotLedgerService with a temporary database."""
    return LotLedgerService(temp_db)


@pytest.fixture
def holdings_service(temp_db):
    """Create a HoldingsService with a temporary database."""
    return HoldingsService(temp_db)


@pytest.fixture
def imported_brokerage(import_service, fixtures_dir):
    """Import the brokerage fixture and return the import result."""
    return import_service.import_qif(str(fixtures_dir / "brokerage.qif"))


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
