"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ParseError(DomainError):
    """Malformed or unrecognized QIF input."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)
        self.line_number = line_number


class UnknownContextError(ParseError):
    """A !Type directive names a context we do not understand."""


class UnknownInvestmentActionError(ParseError):
    """An investment record carries an action code we do not understand."""


class InvalidFieldError(ParseError):
    """A field value (date, amount, quantity) could not be parsed."""


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class TransactionWithoutAccountError(ValidationError):
    """A transaction record appeared before any !Account record."""


class MissingSecuritiesError(ValidationError):
    """Investment transactions were found but no securities were defined."""


class MissingAccountsError(ValidationError):
    """Transactions were found but no accounts were defined."""


class TransactionMissingAccountError(ValidationError):
    """A transaction entry has no account reference."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as an account re-imported with different details."""


class ReplayError(DomainError):
    """The lot ledger replay could not be completed."""


class ReplayNotFoundError(ReplayError, NotFoundError):
    """A replayed transaction refers to an unknown account or security."""


class UnhandledInvestmentActionError(ReplayError):
    """A replayed transaction carries an action the ledger has no rule for."""


def unknown_context(directive: str) -> str:
    """Return message for an unrecognized !Type directive."""
    return f"Don't understand context: {directive}"


def transaction_without_account(context: str, line_number: Optional[int] = None) -> str:
    """Return message for a transaction record with no current account."""
    message = f"Transaction in {context} context but no current account"
    if line_number is not None:
        message += f"; line {line_number}"
    return message


def account_not_found(account_ref: str) -> str:
    """Return message for missing account."""
    return f"Account {account_ref} not found"


def security_not_found(security_ref: Optional[str]) -> str:
    """Return message for missing security."""
    return f"Security {security_ref} not found"


def account_conflict(name: str, conflicts: list[str]) -> str:
    """Return message when an account is re-imported with different details."""
    return f"Account '{name}' already exists: {', '.join(conflicts)}"


def unhandled_investment_action(action: Optional[str], transaction_id: str) -> str:
    """Return message for an action the lot ledger cannot replay."""
    return f"Unhandled investment action '{action}' in transaction {transaction_id}"
