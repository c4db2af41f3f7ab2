"""SQLAlchemy models for qifledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Float,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Account model (bank, cash, credit card, investment, ...)."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    type = Column(String, nullable=True)
    description = Column(String, nullable=True)
    credit_limit = Column(Float, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")


class Security(Base):
    """Security (stock, fund, option, ...) model."""

    __tablename__ = "securities"

    id = Column(String, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    symbol = Column(String, nullable=True)
    type = Column(String, nullable=True)
    goal = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    prices = relationship("Price", back_populates="security")


class Price(Base):
    """Daily price quote model."""

    __tablename__ = "prices"

    id = Column(String, primary_key=True)
    security_id = Column(String, ForeignKey("securities.id"), nullable=False)
    date = Column(Date, nullable=False)
    price = Column(Float, nullable=False)

    # One quote per security per day
    __table_args__ = (UniqueConstraint("security_id", "date", name="uq_security_date"),)

    # Relationships
    security = relationship("Security", back_populates="prices")


class Transaction(Base):
    """Bank or investment transaction model.

    transaction_type is 'bank' or 'investment'; the investment columns are null
    for bank transactions.
    """

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=True)
    payee = Column(String, nullable=True)
    memo = Column(String, nullable=True)
    number = Column(String, nullable=True)
    cleared = Column(String, nullable=True)
    category = Column(String, nullable=True)
    address = Column(String, nullable=True)
    investment_action = Column(String, nullable=True)
    security_id = Column(String, ForeignKey("securities.id"), nullable=True)
    quantity = Column(Float, nullable=True)
    price = Column(Float, nullable=True)
    commission = Column(Float, nullable=True)
    running_balance = Column(Float, nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_transactions_account_date", "account_id", "date", "id"),)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    splits = relationship(
        "TransactionSplit",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionSplit.position",
    )


class TransactionSplit(Base):
    """One category line of a split bank transaction."""

    __tablename__ = "transaction_splits"

    id = Column(String, primary_key=True)
    transaction_id = Column(String, ForeignKey("transactions.id"), nullable=False)
    position = Column(Integer, nullable=False)
    amount = Column(Float, nullable=True)
    category = Column(String, nullable=True)
    memo = Column(String, nullable=True)

    # Relationships
    transaction = relationship("Transaction", back_populates="splits")


class Lot(Base):
    """Cost-basis lot model."""

    __tablename__ = "lots"

    id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    security_id = Column(String, ForeignKey("securities.id"), nullable=False)
    purchase_date = Column(Date, nullable=False)
    quantity = Column(Float, nullable=False)
    cost_basis = Column(Float, nullable=False)
    remaining_quantity = Column(Float, nullable=False)
    closed_date = Column(Date, nullable=True)
    created_by_transaction_id = Column(String, ForeignKey("transactions.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_lots_account_security", "account_id", "security_id"),)

    # Relationships
    allocations = relationship("LotAllocation", back_populates="lot", cascade="all, delete-orphan")


class LotAllocation(Base):
    """Shares a transaction drew from a lot."""

    __tablename__ = "lot_allocations"

    id = Column(String, primary_key=True)
    lot_id = Column(String, ForeignKey("lots.id"), nullable=False)
    transaction_id = Column(String, ForeignKey("transactions.id"), nullable=False)
    shares_allocated = Column(Float, nullable=False)
    cost_basis_allocated = Column(Float, nullable=False)
    date = Column(Date, nullable=False)

    # Relationships
    lot = relationship("Lot", back_populates="allocations")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
