"""Domain models - pure Python dataclasses and ledger constants"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
import uuid

# Transaction types
INCOME = "income"
EXPENSE = "expense"
TRANSFER_IN = "transfer_in"
TRANSFER_OUT = "transfer_out"
CREDIT_EXPENSE = "credit_expense"
BILL_PAYMENT = "bill_payment"

TRANSACTION_TYPES = (INCOME, EXPENSE, TRANSFER_IN, TRANSFER_OUT, CREDIT_EXPENSE, BILL_PAYMENT)

# Sign of each type when summed against a wallet or a credit card.
# Types missing from a map do not reference that kind of account.
WALLET_SIGNS = {
    INCOME: 1,
    TRANSFER_IN: 1,
    EXPENSE: -1,
    TRANSFER_OUT: -1,
    BILL_PAYMENT: -1,
}
CARD_SIGNS = {
    CREDIT_EXPENSE: 1,
    BILL_PAYMENT: -1,
}

WALLET_TYPES = ("checking", "savings", "cash", "investment")
CATEGORY_TYPES = (INCOME, EXPENSE)

# Installment lifecycle
INSTALLMENT_ACTIVE = "active"
INSTALLMENT_COMPLETED = "completed"
INSTALLMENT_CANCELLED = "cancelled"

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_OVERDUE = "overdue"

# Membership
ROLE_ADMIN = "admin"
ROLE_COLLABORATOR = "collaborator"
MEMBERSHIP_PENDING = "pending"
MEMBERSHIP_APPROVED = "approved"
MEMBERSHIP_REJECTED = "rejected"


@dataclass
class ScheduledPayment:
    """Single payment in an installment schedule"""

    payment_number: int
    due_date: date
    amount_cents: int


@dataclass
class CategoryTotal:
    """Sum of transactions for one category and type"""

    category_id: Optional[uuid.UUID]
    category_name: Optional[str]
    type: str
    total_cents: int
    transaction_count: int


@dataclass
class UserSummary:
    """Per-member activity inside a cost center"""

    user_id: uuid.UUID
    name: str
    email: str
    total_transactions: int
    total_income_cents: int
    total_expenses_cents: int
    balance_cents: int
    last_transaction_at: Optional[datetime]


@dataclass
class BalanceCheck:
    """Stored balance compared with the balance derived from the transaction log"""

    account_type: str  # "wallet" or "credit_card"
    account_id: uuid.UUID
    name: str
    stored_cents: int
    ledger_cents: int

    @property
    def consistent(self) -> bool:
        return self.stored_cents == self.ledger_cents

    @property
    def drift_cents(self) -> int:
        return self.stored_cents - self.ledger_cents
