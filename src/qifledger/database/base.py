"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import Iterable, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from qifledger.domain.entities import (
    Account,
    Security,
    Price,
    Split,
    Transaction,
    Lot,
    LotAllocation,
)


class Database(ABC):
    """Abstract database interface for qifledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes into one all-or-nothing unit.

        The outermost block commits when it exits normally and rolls back when
        it exits with an exception. Nested blocks join the outer one. Writes
        made outside any block are committed immediately.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(self, account: Account) -> str:
        """Insert an account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        """Get account by name."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts, ordered by name."""
        pass

    # Security operations
    @abstractmethod
    def create_security(self, security: Security) -> str:
        """Insert a security. Returns security ID."""
        pass

    @abstractmethod
    def get_security(self, security_id: str) -> Optional[Security]:
        """Get security by ID."""
        pass

    @abstractmethod
    def list_securities(self) -> list[Security]:
        """List all securities, ordered by name."""
        pass

    # Price operations
    @abstractmethod
    def create_price(self, price: Price) -> str:
        """Insert a price quote. Returns price ID."""
        pass

    @abstractmethod
    def get_price(self, security_id: str, price_date: date) -> Optional[Price]:
        """Get the quote for a security on a given day."""
        pass

    @abstractmethod
    def list_prices(self, security_id: Optional[str] = None) -> list[Price]:
        """List price quotes ordered by security and date."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, transaction: Transaction, splits: Iterable[Split] = ()) -> str:
        """Insert a bank or investment transaction with its splits. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[str] = None,
        transaction_type: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions ordered by (date, id).

        Args:
            account_id: Only transactions of this account
            transaction_type: 'bank' or 'investment'
        """
        pass

    @abstractmethod
    def list_splits(self, transaction_id: str) -> list[Split]:
        """List the splits of a transaction in file order."""
        pass

    @abstractmethod
    def update_running_balances(self, balances: dict[str, float]) -> None:
        """Set running_balance for each transaction ID in the mapping."""
        pass

    # Lot operations
    @abstractmethod
    def delete_all_lots(self) -> None:
        """Delete every lot and lot allocation."""
        pass

    @abstractmethod
    def create_lots(self, lots: Iterable[Lot]) -> None:
        """Insert lots."""
        pass

    @abstractmethod
    def create_lot_allocations(self, allocations: Iterable[LotAllocation]) -> None:
        """Insert lot allocations."""
        pass

    @abstractmethod
    def list_lots(
        self,
        account_id: Optional[str] = None,
        security_id: Optional[str] = None,
        open_only: bool = False,
    ) -> list[Lot]:
        """List lots ordered by (purchase_date, id).

        Args:
            account_id: Only lots of this account
            security_id: Only lots of this security
            open_only: Only lots not yet closed
        """
        pass

    @abstractmethod
    def list_lot_allocations(self, lot_id: Optional[str] = None) -> list[LotAllocation]:
        """List lot allocations ordered by (date, id)."""
        pass
