"""Credit card engine - purchases against the card limit and bill payments"""

import uuid
from dataclasses import dataclass
from datetime import date
from sqlalchemy.orm import Session
from budget_ledger.domain import balances
from budget_ledger.domain.exceptions import InvalidAmountError
from budget_ledger.domain.models import BILL_PAYMENT, CREDIT_EXPENSE
from budget_ledger.infrastructure.database.models import CreditCard, LedgerTransaction, Wallet
from budget_ledger.infrastructure.database.session import unit_of_work
from budget_ledger.services.balance_ledger import BalanceLedger
from budget_ledger.services.transaction_ledger import TransactionLedger


@dataclass
class ChargeResult:
    transaction: LedgerTransaction
    credit_card: CreditCard


@dataclass
class BillPaymentResult:
    transaction: LedgerTransaction
    credit_card: CreditCard
    wallet: Wallet


class CreditCardEngine:
    def __init__(self, db: Session):
        self.db = db
        self.balance_ledger = BalanceLedger(db)
        self.transaction_ledger = TransactionLedger(db)

    def charge_for_purchase(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        card_id: uuid.UUID,
        amount_cents: int,
        description: str,
        category_id: uuid.UUID | None = None,
        purchase_date: date | None = None,
        notes: str | None = None,
        installment_payment_id: uuid.UUID | None = None,
    ) -> ChargeResult:
        """
        Charge a purchase to a card and log it as a credit_expense.

        Raises:
            CreditLimitExceededError: charge would push the balance past the limit;
                the card is left untouched
            NotFoundError: user is not an approved member, or the card, category or
                installment payment is outside the cost center
        """
        balances.validate_amount(amount_cents)

        with unit_of_work(self.db):
            self.transaction_ledger.require_member(cost_center_id, user_id)
            self.balance_ledger.lock_card(card_id, cost_center_id)
            self.transaction_ledger.require_category(cost_center_id, category_id)
            link = self.transaction_ledger.installment_link(cost_center_id, installment_payment_id)
            card = self.balance_ledger.charge_card(card_id, amount_cents)
            transaction = self.transaction_ledger.append(
                cost_center_id,
                user_id,
                CREDIT_EXPENSE,
                description,
                amount_cents,
                credit_card_id=card_id,
                category_id=category_id,
                date=purchase_date,
                notes=notes,
                **link,
            )

        return ChargeResult(transaction=transaction, credit_card=card)

    def pay_bill(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        card_id: uuid.UUID,
        amount_cents: int,
        from_wallet_id: uuid.UUID,
        payment_date: date | None = None,
    ) -> BillPaymentResult:
        """
        Pay down a card from a wallet.

        Overpayment is rejected: the amount may not exceed what is owed on the
        card, so the wallet is never debited for money the card cannot absorb.

        Raises:
            InvalidAmountError: non-positive amount or more than the card owes
            NotFoundError: user is not an approved member, or card or wallet
                outside the cost center
            InsufficientFundsError: wallet balance below the amount
        """
        balances.validate_amount(amount_cents)

        with unit_of_work(self.db):
            self.transaction_ledger.require_member(cost_center_id, user_id)
            card = self.balance_ledger.lock_card(card_id, cost_center_id)
            wallet = self.balance_ledger.lock_wallet(from_wallet_id, cost_center_id)

            if amount_cents > card.current_balance_cents:
                raise InvalidAmountError(
                    f"Payment of {amount_cents} cents exceeds the {card.current_balance_cents} cents "
                    f"owed on {card.name}"
                )

            # wallet funds are checked before the card balance moves
            wallet = self.balance_ledger.debit_wallet(from_wallet_id, amount_cents)
            card = self.balance_ledger.reduce_card_balance(card_id, amount_cents)
            transaction = self.transaction_ledger.append(
                cost_center_id,
                user_id,
                BILL_PAYMENT,
                f"Card payment {card.name}",
                amount_cents,
                wallet_id=from_wallet_id,
                credit_card_id=card_id,
                date=payment_date,
            )

        return BillPaymentResult(transaction=transaction, credit_card=card, wallet=wallet)
