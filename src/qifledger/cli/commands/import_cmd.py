"""QIF import command."""

import click
from qifledger.cli.error_handling import handle_domain_error
from qifledger.domain.qif_import import QIFImportService


@click.command("import")
@click.argument("qif_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_qif(ctx, qif_file: str):
    """Import accounts, securities, prices and transactions from a QIF file.

    Transactions already in the database are skipped, so importing the same
    export twice is harmless. The lot ledger is rebuilt after every import.
    """
    db = ctx.obj["db"]
    service = QIFImportService(db)

    try:
        result = service.import_qif(qif_file)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Accounts: {result['accounts']} new")
    click.echo(f"  Securities: {result['securities']} new")
    click.echo(f"  Transactions: {result['transactions_imported']} imported")
    click.echo(f"  Skipped: {result['transactions_skipped']} already imported")
    click.echo(f"  Prices: {result['prices']} new")
    click.echo(f"  Lots: {result['lots']} ({result['allocations']} allocations)")
    if result["warnings"]:
        click.echo(f"  Warnings: {len(result['warnings'])}")
        for warning in result["warnings"]:
            click.echo(f"    {warning}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_qif)
