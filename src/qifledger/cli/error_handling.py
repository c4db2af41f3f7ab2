"""CLI error handling helpers."""

import click

from qifledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_account_ids(ctx: click.Context, db, names: tuple[str, ...]) -> list[str]:
    """Look up accounts by name, or exit with a CLI error if one is unknown."""
    account_ids = []
    for name in names:
        account = db.get_account_by_name(name)
        if account is None:
            click.echo(f"Error: Account '{name}' not found", err=True)
            ctx.exit(1)
        account_ids.append(account.id)
    return account_ids
