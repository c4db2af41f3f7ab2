"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the table layout can change
without touching the ledger or holdings code.
"""

from qifledger.domain import entities as domain
from qifledger.database.models import (
    Account as ORMAccount,
    Security as ORMSecurity,
    Price as ORMPrice,
    Transaction as ORMTransaction,
    TransactionSplit as ORMTransactionSplit,
    Lot as ORMLot,
    LotAllocation as ORMLotAllocation,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        type=orm_account.type,
        description=orm_account.description,
        credit_limit=orm_account.credit_limit,
    )


def security_to_domain(orm_security: ORMSecurity) -> domain.Security:
    """Convert SQLAlchemy Security model to domain Security entity."""
    return domain.Security(
        id=orm_security.id,
        name=orm_security.name,
        symbol=orm_security.symbol,
        type=orm_security.type,
        goal=orm_security.goal,
    )


def price_to_domain(orm_price: ORMPrice) -> domain.Price:
    """Convert SQLAlchemy Price model to domain Price entity."""
    return domain.Price(
        id=orm_price.id,
        security_id=orm_price.security_id,
        date=orm_price.date,
        price=orm_price.price,
    )


def split_to_domain(orm_split: ORMTransactionSplit) -> domain.Split:
    """Convert SQLAlchemy TransactionSplit model to domain Split entity."""
    return domain.Split(
        id=orm_split.id,
        transaction_id=orm_split.transaction_id,
        amount=orm_split.amount,
        category=orm_split.category,
        memo=orm_split.memo,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to a bank or investment transaction."""
    common = dict(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        payee=orm_transaction.payee,
        memo=orm_transaction.memo,
        cleared=orm_transaction.cleared,
        category=orm_transaction.category,
        address=orm_transaction.address,
        running_balance=orm_transaction.running_balance,
    )
    if orm_transaction.transaction_type == domain.InvestmentTransaction.transaction_type:
        return domain.InvestmentTransaction(
            investment_action=orm_transaction.investment_action,
            security_id=orm_transaction.security_id,
            quantity=orm_transaction.quantity,
            price=orm_transaction.price,
            commission=orm_transaction.commission,
            **common,
        )
    return domain.BankTransaction(number=orm_transaction.number, **common)


def lot_to_domain(orm_lot: ORMLot) -> domain.Lot:
    """Convert SQLAlchemy Lot model to domain Lot entity."""
    return domain.Lot(
        id=orm_lot.id,
        account_id=orm_lot.account_id,
        security_id=orm_lot.security_id,
        purchase_date=orm_lot.purchase_date,
        quantity=orm_lot.quantity,
        cost_basis=orm_lot.cost_basis,
        remaining_quantity=orm_lot.remaining_quantity,
        created_by_transaction_id=orm_lot.created_by_transaction_id,
        closed_date=orm_lot.closed_date,
        created_at=orm_lot.created_at,
    )


def lot_allocation_to_domain(orm_allocation: ORMLotAllocation) -> domain.LotAllocation:
    """Convert SQLAlchemy LotAllocation model to domain LotAllocation entity."""
    return domain.LotAllocation(
        id=orm_allocation.id,
        lot_id=orm_allocation.lot_id,
        transaction_id=orm_allocation.transaction_id,
        shares_allocated=orm_allocation.shares_allocated,
        cost_basis_allocated=orm_allocation.cost_basis_allocated,
        date=orm_allocation.date,
    )
