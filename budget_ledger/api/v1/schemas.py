"""Pydantic schemas for API request/response validation"""

import uuid
import datetime as dt
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field

WalletType = Literal["checking", "savings", "cash", "investment"]
CategoryType = Literal["income", "expense"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Users and cost centers


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class UserResponse(ORMModel):
    id: uuid.UUID
    name: str
    email: str
    created_at: dt.datetime


class CostCenterCreateRequest(BaseModel):
    admin_user_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    code: Optional[str] = Field(None, min_length=1, max_length=20)


class CostCenterResponse(ORMModel):
    id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    admin_user_id: uuid.UUID
    created_at: dt.datetime


class UserCostCenterItem(BaseModel):
    """A cost center as seen by one member"""

    cost_center: CostCenterResponse
    role: str
    status: str


class JoinRequest(BaseModel):
    user_id: uuid.UUID
    code: str = Field(..., min_length=1)


class MembershipResponse(ORMModel):
    id: uuid.UUID
    user_id: uuid.UUID
    cost_center_id: uuid.UUID
    role: str
    status: str
    requested_at: dt.datetime
    approved_at: Optional[dt.datetime] = None


class PendingMembershipResponse(MembershipResponse):
    user: UserResponse


# Wallets, cards, categories


class WalletCreateRequest(BaseModel):
    user_id: uuid.UUID = Field(..., description="User recorded on the opening balance entry")
    name: str = Field(..., min_length=1, max_length=255)
    type: WalletType
    opening_balance_cents: int = Field(0, ge=0)
    is_default: bool = False
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)


class WalletResponse(ORMModel):
    id: uuid.UUID
    cost_center_id: uuid.UUID
    name: str
    type: str
    balance_cents: int
    is_default: bool
    color: str
    icon: str


class CreditCardCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    limit_cents: int = Field(..., gt=0)
    due_day: int = Field(..., ge=1, le=31)
    closing_day: int = Field(..., ge=1, le=31)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)


class CreditCardResponse(ORMModel):
    id: uuid.UUID
    cost_center_id: uuid.UUID
    name: str
    limit_cents: int
    current_balance_cents: int
    due_day: int
    closing_day: int
    color: str
    icon: str

    @computed_field
    @property
    def available_cents(self) -> int:
        return self.limit_cents - self.current_balance_cents


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CategoryType
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(None, max_length=50)
    is_default: bool = False


class CategoryResponse(ORMModel):
    id: uuid.UUID
    cost_center_id: uuid.UUID
    name: str
    type: str
    color: Optional[str] = None
    icon: Optional[str] = None
    is_default: bool


# Transactions


class TransactionResponse(ORMModel):
    id: uuid.UUID
    cost_center_id: uuid.UUID
    user_id: uuid.UUID
    wallet_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    type: str
    description: str
    amount_cents: int
    category_id: Optional[uuid.UUID] = None
    date: dt.date
    installment_id: Optional[uuid.UUID] = None
    current_installment: Optional[int] = None
    total_installments: Optional[int] = None
    is_fixed: bool
    notes: Optional[str] = None
    transfer_pair_id: Optional[uuid.UUID] = None
    created_at: dt.datetime


class TransactionCreateRequest(BaseModel):
    """Income or expense paid from a wallet; card purchases use the charges route"""

    user_id: uuid.UUID
    type: CategoryType
    wallet_id: uuid.UUID
    amount_cents: int = Field(..., description="Amount in cents, must be positive")
    description: str = Field(..., min_length=1)
    category_id: Optional[uuid.UUID] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    is_fixed: bool = False
    installment_payment_id: Optional[uuid.UUID] = Field(None, description="Scheduled payment this expense settles")


class TransactionUpdateRequest(BaseModel):
    """Only descriptive fields; amount, type and references are immutable"""

    model_config = ConfigDict(extra="forbid")

    description: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    date: Optional[dt.date] = None
    category_id: Optional[uuid.UUID] = None


class TransferRequest(BaseModel):
    user_id: uuid.UUID
    from_wallet_id: uuid.UUID
    to_wallet_id: uuid.UUID
    amount_cents: int = Field(..., description="Amount in cents, must be positive")
    description: str = Field(..., min_length=1)
    date: Optional[dt.date] = None


class TransferResponse(BaseModel):
    transfer_pair_id: uuid.UUID
    outgoing: TransactionResponse
    incoming: TransactionResponse
    from_wallet: WalletResponse
    to_wallet: WalletResponse


class ChargeRequest(BaseModel):
    user_id: uuid.UUID
    amount_cents: int = Field(..., description="Amount in cents, must be positive")
    description: str = Field(..., min_length=1)
    category_id: Optional[uuid.UUID] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    installment_payment_id: Optional[uuid.UUID] = Field(None, description="Scheduled payment this charge settles")


class ChargeResponse(BaseModel):
    transaction: TransactionResponse
    credit_card: CreditCardResponse


class BillPaymentRequest(BaseModel):
    user_id: uuid.UUID
    amount_cents: int = Field(..., description="Amount in cents, at most the card balance")
    from_wallet_id: uuid.UUID
    date: Optional[dt.date] = None


class BillPaymentResponse(BaseModel):
    transaction: TransactionResponse
    credit_card: CreditCardResponse
    wallet: WalletResponse


# Installments


class InstallmentCreateRequest(BaseModel):
    wallet_id: uuid.UUID
    description: str = Field(..., min_length=1)
    total_amount_cents: int = Field(..., description="Total purchase amount in cents")
    total_installments: int = Field(..., description="Number of monthly payments (2-60)")
    start_date: dt.date = Field(..., description="Due date of the first payment")


class InstallmentPaymentResponse(ORMModel):
    id: uuid.UUID
    installment_id: uuid.UUID
    payment_number: int
    amount_cents: int
    due_date: dt.date
    paid_at: Optional[dt.datetime] = None
    status: str


class InstallmentResponse(ORMModel):
    id: uuid.UUID
    cost_center_id: uuid.UUID
    wallet_id: uuid.UUID
    description: str
    total_amount_cents: int
    total_installments: int
    paid_installments: int
    start_date: dt.date
    status: str
    created_at: dt.datetime
    payments: List[InstallmentPaymentResponse] = []


class InstallmentSummaryResponse(ORMModel):
    """Installment without its schedule, for listings"""

    id: uuid.UUID
    cost_center_id: uuid.UUID
    wallet_id: uuid.UUID
    description: str
    total_amount_cents: int
    total_installments: int
    paid_installments: int
    start_date: dt.date
    status: str


class PaymentPaidResponse(BaseModel):
    payment: InstallmentPaymentResponse
    installment: InstallmentSummaryResponse


class UpcomingPaymentResponse(InstallmentPaymentResponse):
    installment_description: str
    total_installments: int
    overdue: bool


# Reports


class TotalsResponse(BaseModel):
    cost_center_id: uuid.UUID
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    totals_cents: Dict[str, int]
    net_cents: int


class CategoryTotalResponse(BaseModel):
    category_id: Optional[uuid.UUID] = None
    category_name: Optional[str] = None
    type: str
    total_cents: int
    transaction_count: int


class UserReportResponse(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    total_transactions: int
    total_income_cents: int
    total_expenses_cents: int
    balance_cents: int
    last_transaction_at: Optional[dt.datetime] = None


class BalanceCheckResponse(BaseModel):
    account_type: str
    account_id: uuid.UUID
    name: str
    stored_cents: int
    ledger_cents: int
    drift_cents: int
    consistent: bool


class ReconciliationResponse(BaseModel):
    cost_center_id: uuid.UUID
    consistent: bool
    accounts: List[BalanceCheckResponse]
