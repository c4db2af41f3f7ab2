"""Lot ledger commands."""

import click
from qifledger.cli.error_handling import handle_domain_error, resolve_account_ids
from qifledger.domain.lots import LotLedgerService


@click.group()
def lots_group():
    """Rebuild and inspect cost-basis lots."""
    pass


@lots_group.command("rebuild")
@click.pass_context
def rebuild_lots(ctx):
    """Rebuild all lots by replaying stored investment transactions."""
    db = ctx.obj["db"]
    service = LotLedgerService(db)

    try:
        result = service.import_lots()
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Rebuilt {result['lots']} lots with {result['allocations']} allocations")
    for warning in result["warnings"]:
        click.echo(f"Warning: {warning}", err=True)


@lots_group.command("list")
@click.option("--account", help="Only show lots in this account")
@click.option("--open-only", is_flag=True, help="Hide closed lots")
@click.pass_context
def list_lots(ctx, account: str | None, open_only: bool):
    """List lots ordered by purchase date."""
    db = ctx.obj["db"]
    service = LotLedgerService(db)

    account_id = None
    if account:
        account_id = resolve_account_ids(ctx, db, (account,))[0]

    lots = service.list_lots(account_id=account_id, open_only=open_only)
    if not lots:
        click.echo("No lots found.")
        return

    accounts = {acc.id: acc.name for acc in db.list_accounts()}
    securities = {sec.id: sec.symbol or sec.name for sec in db.list_securities()}

    click.echo(
        f"{'Purchased':<12} {'Account':<20} {'Security':<12} "
        f"{'Quantity':>12} {'Remaining':>12} {'Cost Basis':>14} {'Closed':<10}"
    )
    click.echo("-" * 98)
    for lot in lots:
        closed = lot.closed_date.isoformat() if lot.closed_date else ""
        click.echo(
            f"{lot.purchase_date.isoformat():<12} "
            f"{accounts.get(lot.account_id, lot.account_id)[:20]:<20} "
            f"{securities.get(lot.security_id, lot.security_id)[:12]:<12} "
            f"{lot.quantity:>12.4f} {lot.remaining_quantity:>12.4f} "
            f"{lot.cost_basis:>14.2f} {closed:<10}"
        )


def register_commands(cli):
    """Register lot commands with main CLI."""
    cli.add_command(lots_group, name="lots")
