"""Main CLI entry point."""

import logging

import click
from qifledger.database.factories import DB_PATH_ENV_VAR, create_sqlite_database

# Import and register all commands at module level
from qifledger.cli.commands import holdings, import_cmd, lots


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides QIFLEDGER_DB_PATH environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option("--verbose", "-v", is_flag=True, help="Log import and replay details to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """qifledger - QIF importer with FIFO lots and holdings.

    Import Quicken QIF exports, rebuild cost-basis lots from investment
    transactions and value holdings as of any date.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
import_cmd.register_commands(cli)
lots.register_commands(cli)
holdings.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
