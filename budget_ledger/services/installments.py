"""Installment scheduler - split purchases and track their monthly payments"""

import uuid
from datetime import date, datetime
from typing import List, Tuple
from sqlalchemy.orm import Session
from budget_ledger.config import settings
from budget_ledger.domain.exceptions import InstallmentNotActiveError, NotFoundError
from budget_ledger.domain.installments import generate_installment_schedule
from budget_ledger.domain.models import (
    INSTALLMENT_ACTIVE,
    INSTALLMENT_CANCELLED,
    INSTALLMENT_COMPLETED,
    PAYMENT_PAID,
)
from budget_ledger.infrastructure.database.models import Installment, InstallmentPayment
from budget_ledger.infrastructure.database.repositories import InstallmentRepository, WalletRepository
from budget_ledger.infrastructure.database.session import unit_of_work
from budget_ledger.utils.date_utils import horizon, utc_now


class InstallmentScheduler:
    def __init__(self, db: Session):
        self.db = db
        self.installments = InstallmentRepository(db)
        self.wallets = WalletRepository(db)

    def create_installment(
        self,
        cost_center_id: uuid.UUID,
        wallet_id: uuid.UUID,
        description: str,
        total_amount_cents: int,
        total_installments: int,
        start_date: date,
    ) -> Installment:
        """
        Create an installment together with its full payment schedule.

        The schedule is generated once here; payment rows are never regenerated.

        Raises:
            InvalidInstallmentCountError: count outside 2..max_installments
            InvalidAmountError: total cannot be split into that many payments
            NotFoundError: wallet outside the cost center
        """
        schedule = generate_installment_schedule(total_amount_cents, total_installments, start_date)

        with unit_of_work(self.db):
            wallet = self.wallets.get_wallet(wallet_id)
            if wallet is None or wallet.cost_center_id != cost_center_id:
                raise NotFoundError("Wallet", wallet_id)

            installment = self.installments.create_installment(
                cost_center_id=cost_center_id,
                wallet_id=wallet_id,
                description=description,
                total_amount_cents=total_amount_cents,
                start_date=start_date,
                schedule=schedule,
            )

        return installment

    def get_installment(self, cost_center_id: uuid.UUID, installment_id: uuid.UUID) -> Installment:
        installment = self.installments.get_installment(installment_id)
        if installment is None or installment.cost_center_id != cost_center_id:
            raise NotFoundError("Installment", installment_id)
        return installment

    def list_installments(self, cost_center_id: uuid.UUID, active_only: bool = False) -> List[Installment]:
        status = INSTALLMENT_ACTIVE if active_only else None
        return self.installments.get_installments(cost_center_id, status=status)

    def mark_payment_as_paid(
        self,
        cost_center_id: uuid.UUID,
        payment_id: uuid.UUID,
        paid_at: datetime | None = None,
    ) -> Tuple[InstallmentPayment, bool]:
        """
        Mark a payment paid and advance its installment in the same unit of work.

        Idempotent: a payment that is already paid is returned unchanged and the
        installment counter is not touched again. The flag is True only when
        this call marked the payment paid.

        Raises:
            NotFoundError: payment missing or outside the cost center
            InstallmentNotActiveError: installment was cancelled
        """
        with unit_of_work(self.db):
            payment = self.installments.get_payment(payment_id, for_update=True)
            if payment is None:
                raise NotFoundError("Installment payment", payment_id)

            installment = self.installments.get_installment(payment.installment_id, for_update=True)
            if installment.cost_center_id != cost_center_id:
                raise NotFoundError("Installment payment", payment_id)

            if payment.status == PAYMENT_PAID:
                return payment, False

            if installment.status == INSTALLMENT_CANCELLED:
                raise InstallmentNotActiveError(f"Installment {installment.id} was cancelled")

            payment.status = PAYMENT_PAID
            payment.paid_at = paid_at or utc_now()
            installment.paid_installments += 1
            if installment.paid_installments >= installment.total_installments:
                installment.status = INSTALLMENT_COMPLETED
            self.db.flush()

        return payment, True

    def cancel_installment(self, cost_center_id: uuid.UUID, installment_id: uuid.UUID) -> Installment:
        """Stop tracking an active installment; paid history is kept"""
        with unit_of_work(self.db):
            installment = self.installments.get_installment(installment_id, for_update=True)
            if installment is None or installment.cost_center_id != cost_center_id:
                raise NotFoundError("Installment", installment_id)
            if installment.status != INSTALLMENT_ACTIVE:
                raise InstallmentNotActiveError(f"Installment {installment.id} is already {installment.status}")
            installment.status = INSTALLMENT_CANCELLED
            self.db.flush()

        return installment

    def list_upcoming_payments(
        self,
        cost_center_id: uuid.UUID,
        within_days: int | None = None,
        today: date | None = None,
    ) -> List[InstallmentPayment]:
        """
        Unpaid payments due before today + within_days, earliest first.

        Past-due payments are included; callers flag them as overdue.
        """
        if within_days is None:
            within_days = settings.upcoming_payments_default_days
        today = today or date.today()
        return self.installments.get_upcoming_payments(cost_center_id, horizon(today, within_days))
