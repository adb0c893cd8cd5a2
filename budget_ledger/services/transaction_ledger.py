"""Transaction ledger - append-only money movement log and its read projections"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from budget_ledger.domain import balances
from budget_ledger.domain.exceptions import InvalidTransactionError, NotFoundError
from budget_ledger.domain.models import (
    CARD_SIGNS,
    EXPENSE,
    INCOME,
    MEMBERSHIP_APPROVED,
    TRANSACTION_TYPES,
    WALLET_SIGNS,
    BalanceCheck,
    CategoryTotal,
    UserSummary,
)
from budget_ledger.infrastructure.database.models import Category, LedgerTransaction
from budget_ledger.infrastructure.database.repositories import (
    CategoryRepository,
    CostCenterRepository,
    CreditCardRepository,
    InstallmentRepository,
    TransactionRepository,
    WalletRepository,
)
from budget_ledger.infrastructure.database.session import unit_of_work
from budget_ledger.services.balance_ledger import BalanceLedger

# Fields that may change after a row is written; amount, type and the
# wallet/card references never do.
AMENDABLE_FIELDS = ("description", "notes", "date", "category_id")


class TransactionLedger:
    """Appends ledger rows and answers reporting queries over them"""

    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.categories = CategoryRepository(db)
        self.cost_centers = CostCenterRepository(db)
        self.installments = InstallmentRepository(db)
        self.wallets = WalletRepository(db)
        self.cards = CreditCardRepository(db)
        self.balance_ledger = BalanceLedger(db)

    def require_member(self, cost_center_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Only approved members may move money in a cost center"""
        membership = self.cost_centers.get_membership(user_id, cost_center_id)
        if membership is None or membership.status != MEMBERSHIP_APPROVED:
            raise NotFoundError("User", user_id)

    def require_category(self, cost_center_id: uuid.UUID, category_id: uuid.UUID | None) -> Optional[Category]:
        if category_id is None:
            return None
        category = self.categories.get_category(category_id)
        if category is None or category.cost_center_id != cost_center_id:
            raise NotFoundError("Category", category_id)
        return category

    def installment_link(
        self, cost_center_id: uuid.UUID, installment_payment_id: uuid.UUID | None
    ) -> Dict[str, Any]:
        """Installment fields for a row that settles one scheduled payment"""
        if installment_payment_id is None:
            return {}
        payment = self.installments.get_payment(installment_payment_id)
        if payment is None or payment.installment.cost_center_id != cost_center_id:
            raise NotFoundError("Installment payment", installment_payment_id)
        return {
            "installment_id": payment.installment_id,
            "current_installment": payment.payment_number,
            "total_installments": payment.installment.total_installments,
        }

    def append(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        type: str,
        description: str,
        amount_cents: int,
        wallet_id: uuid.UUID | None = None,
        credit_card_id: uuid.UUID | None = None,
        category_id: uuid.UUID | None = None,
        date: date | None = None,
        notes: str | None = None,
        is_fixed: bool = False,
        transfer_pair_id: uuid.UUID | None = None,
        installment_id: uuid.UUID | None = None,
        current_installment: int | None = None,
        total_installments: int | None = None,
    ) -> LedgerTransaction:
        """
        Append one row to the log. Does not touch balances and does not commit;
        callers pair it with the matching BalanceLedger mutation in one unit of work.

        Raises:
            InvalidTransactionError: unknown type or wallet/card references that
                do not match the type
            InvalidAmountError: non-positive amount
        """
        if type not in TRANSACTION_TYPES:
            raise InvalidTransactionError(f"Unknown transaction type {type!r}")

        needs_wallet = type in WALLET_SIGNS
        needs_card = type in CARD_SIGNS
        if needs_wallet != (wallet_id is not None):
            raise InvalidTransactionError(
                f"{type} transactions {'require' if needs_wallet else 'cannot reference'} a wallet"
            )
        if needs_card != (credit_card_id is not None):
            raise InvalidTransactionError(
                f"{type} transactions {'require' if needs_card else 'cannot reference'} a credit card"
            )

        balances.validate_amount(amount_cents)

        return self.transactions.add_transaction(
            cost_center_id=cost_center_id,
            user_id=user_id,
            wallet_id=wallet_id,
            credit_card_id=credit_card_id,
            type=type,
            description=description,
            amount_cents=amount_cents,
            category_id=category_id,
            date=date or _today(),
            installment_id=installment_id,
            current_installment=current_installment,
            total_installments=total_installments,
            is_fixed=is_fixed,
            notes=notes,
            transfer_pair_id=transfer_pair_id,
        )

    def record_income(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        wallet_id: uuid.UUID,
        amount_cents: int,
        description: str,
        category_id: uuid.UUID | None = None,
        date: date | None = None,
        notes: str | None = None,
        is_fixed: bool = False,
    ) -> LedgerTransaction:
        """Credit a wallet and log the income in one unit of work"""
        with unit_of_work(self.db):
            balances.validate_amount(amount_cents)
            self.require_member(cost_center_id, user_id)
            self.balance_ledger.lock_wallet(wallet_id, cost_center_id)
            self.require_category(cost_center_id, category_id)
            self.balance_ledger.credit_wallet(wallet_id, amount_cents)
            return self.append(
                cost_center_id,
                user_id,
                INCOME,
                description,
                amount_cents,
                wallet_id=wallet_id,
                category_id=category_id,
                date=date,
                notes=notes,
                is_fixed=is_fixed,
            )

    def record_expense(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        wallet_id: uuid.UUID,
        amount_cents: int,
        description: str,
        category_id: uuid.UUID | None = None,
        date: date | None = None,
        notes: str | None = None,
        is_fixed: bool = False,
        installment_payment_id: uuid.UUID | None = None,
    ) -> LedgerTransaction:
        """
        Debit a wallet and log the expense; InsufficientFundsError leaves nothing behind.

        installment_payment_id tags the row as that scheduled payment (number and
        count of its installment). The payment's status is not changed here.
        """
        with unit_of_work(self.db):
            balances.validate_amount(amount_cents)
            self.require_member(cost_center_id, user_id)
            self.balance_ledger.lock_wallet(wallet_id, cost_center_id)
            self.require_category(cost_center_id, category_id)
            link = self.installment_link(cost_center_id, installment_payment_id)
            self.balance_ledger.debit_wallet(wallet_id, amount_cents)
            return self.append(
                cost_center_id,
                user_id,
                EXPENSE,
                description,
                amount_cents,
                wallet_id=wallet_id,
                category_id=category_id,
                date=date,
                notes=notes,
                is_fixed=is_fixed,
                **link,
            )

    def amend(
        self,
        cost_center_id: uuid.UUID,
        transaction_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> LedgerTransaction:
        """Edit descriptive fields of a logged transaction"""
        immutable = sorted(set(changes) - set(AMENDABLE_FIELDS))
        if immutable:
            raise InvalidTransactionError(f"Fields cannot be changed after creation: {', '.join(immutable)}")

        # description and date are NOT NULL; None means "leave as is"
        changes = {
            field: value
            for field, value in changes.items()
            if value is not None or field not in ("description", "date")
        }

        with unit_of_work(self.db):
            transaction = self.get_transaction(cost_center_id, transaction_id)
            if "category_id" in changes:
                self.require_category(cost_center_id, changes["category_id"])
            for field, value in changes.items():
                setattr(transaction, field, value)
            self.db.flush()
            return transaction

    def get_transaction(self, cost_center_id: uuid.UUID, transaction_id: uuid.UUID) -> LedgerTransaction:
        transaction = self.transactions.get_transaction(transaction_id)
        if transaction is None or transaction.cost_center_id != cost_center_id:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def list_transactions(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        type: str | None = None,
        wallet_id: uuid.UUID | None = None,
        credit_card_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> List[LedgerTransaction]:
        return self.transactions.get_transactions(
            cost_center_id,
            start_date=start_date,
            end_date=end_date,
            type=type,
            wallet_id=wallet_id,
            credit_card_id=credit_card_id,
            limit=limit,
        )

    # Reports are recomputed from the log on every call

    def totals_by_type(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Dict[str, int]:
        totals = {txn_type: 0 for txn_type in TRANSACTION_TYPES}
        totals.update(self.transactions.totals_by_type(cost_center_id, start_date, end_date))
        return totals

    def totals_by_category(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[CategoryTotal]:
        return self.transactions.totals_by_category(cost_center_id, start_date, end_date)

    def user_report(self, cost_center_id: uuid.UUID) -> List[UserSummary]:
        return self.transactions.user_summaries(cost_center_id)

    def wallet_balance_from_log(self, wallet_id: uuid.UUID) -> int:
        return balances.signed_totals(self.transactions.sum_by_type_for_wallet(wallet_id))["wallet"]

    def card_balance_from_log(self, card_id: uuid.UUID) -> int:
        return balances.signed_totals(self.transactions.sum_by_type_for_card(card_id))["credit_card"]

    def reconcile(self, cost_center_id: uuid.UUID) -> List[BalanceCheck]:
        """Compare every stored balance in the cost center with the log"""
        checks = [
            BalanceCheck(
                account_type="wallet",
                account_id=wallet.id,
                name=wallet.name,
                stored_cents=wallet.balance_cents,
                ledger_cents=self.wallet_balance_from_log(wallet.id),
            )
            for wallet in self.wallets.get_wallets(cost_center_id)
        ]
        checks.extend(
            BalanceCheck(
                account_type="credit_card",
                account_id=card.id,
                name=card.name,
                stored_cents=card.current_balance_cents,
                ledger_cents=self.card_balance_from_log(card.id),
            )
            for card in self.cards.get_credit_cards(cost_center_id)
        )
        return checks


def _today() -> date:
    return date.today()


