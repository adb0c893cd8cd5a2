"""SQLAlchemy ORM models for the shared-budget ledger"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    """Individual user; authentication lives outside this service"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    memberships = relationship("UserCostCenter", back_populates="user")


class CostCenter(Base):
    """Shared budget; tenancy boundary for every ledger table"""

    __tablename__ = "cost_centers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    admin_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    memberships = relationship("UserCostCenter", back_populates="cost_center", cascade="all, delete-orphan")
    wallets = relationship("Wallet", back_populates="cost_center", cascade="all, delete-orphan")


class UserCostCenter(Base):
    """Membership of a user in a cost center"""

    __tablename__ = "user_cost_centers"
    __table_args__ = (UniqueConstraint("user_id", "cost_center_id", name="uq_user_cost_center"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="collaborator")
    status = Column(String(20), nullable=False, default="pending")
    requested_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    approved_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="memberships")
    cost_center = relationship("CostCenter", back_populates="memberships")


class Wallet(Base):
    """Pool of funds; balance is maintained only by the balance ledger"""

    __tablename__ = "wallets"
    __table_args__ = (CheckConstraint("balance_cents >= 0", name="ck_wallet_balance_non_negative"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    color = Column(String(7), nullable=False, default="#3B82F6")
    icon = Column(String(50), nullable=False, default="wallet")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cost_center = relationship("CostCenter", back_populates="wallets")


class CreditCard(Base):
    """Revolving-limit card; current balance is the amount owed"""

    __tablename__ = "credit_cards"
    __table_args__ = (
        CheckConstraint("current_balance_cents >= 0", name="ck_card_balance_non_negative"),
        CheckConstraint("current_balance_cents <= limit_cents", name="ck_card_balance_within_limit"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    limit_cents = Column(BigInteger, nullable=False)
    current_balance_cents = Column(BigInteger, nullable=False, default=0)
    due_day = Column(Integer, nullable=False)
    closing_day = Column(Integer, nullable=False)
    color = Column(String(7), nullable=False, default="#FF6B6B")
    icon = Column(String(50), nullable=False, default="credit-card")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Category(Base):
    """Income or expense category"""

    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    color = Column(String(7), nullable=True)
    icon = Column(String(50), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LedgerTransaction(Base):
    """Append-only record of one money movement"""

    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("amount_cents > 0", name="ck_transaction_amount_positive"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    wallet_id = Column(Uuid, ForeignKey("wallets.id"), nullable=True, index=True)
    credit_card_id = Column(Uuid, ForeignKey("credit_cards.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    installment_id = Column(Uuid, ForeignKey("installments.id"), nullable=True)
    current_installment = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    is_fixed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    transfer_pair_id = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("Category")


class Installment(Base):
    """Purchase split into scheduled monthly payments"""

    __tablename__ = "installments"
    __table_args__ = (
        CheckConstraint("paid_installments <= total_installments", name="ck_installment_paid_within_total"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cost_center_id = Column(Uuid, ForeignKey("cost_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id = Column(Uuid, ForeignKey("wallets.id"), nullable=False)
    description = Column(Text, nullable=False)
    total_amount_cents = Column(BigInteger, nullable=False)
    total_installments = Column(Integer, nullable=False)
    paid_installments = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship(
        "InstallmentPayment",
        back_populates="installment",
        cascade="all, delete-orphan",
        order_by="InstallmentPayment.payment_number",
    )


class InstallmentPayment(Base):
    """Individual payment within an installment schedule"""

    __tablename__ = "installment_payments"
    __table_args__ = (UniqueConstraint("installment_id", "payment_number", name="uq_installment_payment_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    installment_id = Column(Uuid, ForeignKey("installments.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_number = Column(Integer, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installment = relationship("Installment", back_populates="payments")
