"""Tests for the command-line interface."""

from qifledger.cli.main import cli


def invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "import" in result.output
    assert "holdings" in result.output


def test_import_successful(cli_runner, temp_db, fixtures_dir):
    """Test successful QIF import."""
    result = invoke(cli_runner, temp_db, "import", str(fixtures_dir / "brokerage.qif"))

    assert result.exit_code == 0
    assert "Import complete" in result.output
    assert "Transactions: 8 imported" in result.output
    assert "Lots: 3 (2 allocations)" in result.output


def test_import_twice_skips_everything(cli_runner, temp_db, fixtures_dir):
    qif_file = str(fixtures_dir / "brokerage.qif")
    invoke(cli_runner, temp_db, "import", qif_file)

    result = invoke(cli_runner, temp_db, "import", qif_file)

    assert result.exit_code == 0
    assert "Transactions: 0 imported" in result.output
    assert "Skipped: 8 already imported" in result.output


def test_import_invalid_file(cli_runner, temp_db, fixtures_dir):
    """Domain errors are reported and the command fails."""
    result = invoke(cli_runner, temp_db, "import", str(fixtures_dir / "no_account.qif"))

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "no current account" in result.output


def test_import_missing_file(cli_runner, temp_db, tmp_path):
    result = invoke(cli_runner, temp_db, "import", str(tmp_path / "missing.qif"))

    assert result.exit_code != 0


def test_lots_rebuild_and_list(cli_runner, temp_db, fixtures_dir):
    invoke(cli_runner, temp_db, "import", str(fixtures_dir / "brokerage.qif"))

    rebuild = invoke(cli_runner, temp_db, "lots", "rebuild")
    listing = invoke(cli_runner, temp_db, "lots", "list", "--account", "Brokerage", "--open-only")

    assert rebuild.exit_code == 0
    assert "Rebuilt 3 lots with 2 allocations" in rebuild.output
    assert listing.exit_code == 0
    assert "2024-02-01" in listing.output
    assert "2024-01-15" not in listing.output


def test_lots_list_empty(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "lots", "list")

    assert result.exit_code == 0
    assert "No lots found." in result.output


def test_lots_list_unknown_account(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "lots", "list", "--account", "Nowhere")

    assert result.exit_code == 1
    assert "Account 'Nowhere' not found" in result.output


def test_holdings_as_of(cli_runner, temp_db, fixtures_dir):
    invoke(cli_runner, temp_db, "import", str(fixtures_dir / "brokerage.qif"))

    result = invoke(cli_runner, temp_db, "holdings", "--as-of", "2024-02-15", "--account", "Brokerage")

    assert result.exit_code == 0
    assert "Holdings as of 2024-02-15" in result.output
    assert "ACME" in result.output
    assert "150.0000" in result.output
    assert "CASH" in result.output


def test_holdings_filter(cli_runner, temp_db, fixtures_dir):
    invoke(cli_runner, temp_db, "import", str(fixtures_dir / "brokerage.qif"))

    result = invoke(cli_runner, temp_db, "holdings", "--as-of", "2024-03-15", "--filter", "vti")

    assert result.exit_code == 0
    assert "VTI" in result.output
    assert "ACME" not in result.output


def test_holdings_invalid_date(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "holdings", "--as-of", "not a date")

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_holdings_empty(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "holdings", "--as-of", "2024-01-01")

    assert result.exit_code == 0
    assert "No holdings as of 2024-01-01." in result.output
