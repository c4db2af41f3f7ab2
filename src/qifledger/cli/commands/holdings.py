"""Holdings command."""

from datetime import date

import click
from qifledger.cli.error_handling import resolve_account_ids
from qifledger.domain.holdings import HoldingsService
from qifledger.utils.date_parser import parse_date


@click.command("holdings")
@click.option("--as-of", "as_of", help="Valuation date (YYYY-MM-DD, 'today' or 'yesterday')")
@click.option("--account", "accounts", multiple=True, help="Account name (repeatable)")
@click.option("--filter", "filter_query", help="Match security name, symbol or account name")
@click.pass_context
def show_holdings(ctx, as_of: str | None, accounts: tuple[str, ...], filter_query: str | None):
    """Show holdings and unrealized gains as of a date.

    Examples:
        qifledger holdings
        qifledger holdings --as-of 2024-02-15 --account "Brokerage"
        qifledger holdings --filter vanguard
    """
    db = ctx.obj["db"]
    service = HoldingsService(db)

    as_of_date = date.today()
    if as_of:
        try:
            as_of_date = parse_date(as_of)
        except ValueError as e:
            click.echo(f"Error: Invalid date: {e}", err=True)
            ctx.exit(1)

    account_ids = resolve_account_ids(ctx, db, accounts)
    holdings = service.holdings_as_of(
        as_of_date, selected_account_ids=account_ids, filter_query=filter_query
    )

    if not holdings:
        click.echo(f"No holdings as of {as_of_date.isoformat()}.")
        return

    click.echo(f"\nHoldings as of {as_of_date.isoformat()}:")
    click.echo(
        f"{'Account':<20} {'Security':<12} {'Quantity':>12} {'Price':>10} "
        f"{'Value':>14} {'Cost Basis':>14} {'Gain/Loss':>12} {'Gain %':>8} {'Weight':>7}"
    )
    click.echo("-" * 115)
    for holding in holdings:
        price = f"{holding.quote_price:>10.2f}"
        if holding.is_stale:
            price = f"{holding.quote_price:>9.2f}*"
        click.echo(
            f"{holding.account_name[:20]:<20} "
            f"{(holding.security_symbol or holding.security_name)[:12]:<12} "
            f"{holding.quantity:>12.4f} {price} "
            f"{holding.market_value:>14.2f} {holding.cost_basis:>14.2f} "
            f"{holding.unrealized_gain_loss:>12.2f} "
            f"{holding.unrealized_gain_loss_pct * 100:>7.2f}% "
            f"{holding.market_value_pct * 100:>6.1f}%"
        )

    total_value = sum(h.market_value for h in holdings)
    total_gain = sum(h.unrealized_gain_loss for h in holdings)
    click.echo("-" * 115)
    click.echo(f"Total value: {total_value:,.2f}  Unrealized gain/loss: {total_gain:,.2f}")
    if any(h.is_stale for h in holdings):
        click.echo("* price is stale or missing")


def register_commands(cli):
    """Register holdings command with main CLI."""
    cli.add_command(show_holdings)
