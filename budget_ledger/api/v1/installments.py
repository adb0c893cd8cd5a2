"""Installment purchases and their payment schedules"""

import time
import uuid
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import (
    InstallmentCreateRequest,
    InstallmentPaymentResponse,
    InstallmentResponse,
    InstallmentSummaryResponse,
    PaymentPaidResponse,
    UpcomingPaymentResponse,
)
from budget_ledger.api.dependencies import get_event_client, get_request_id, publish_event
from budget_ledger.config import settings
from budget_ledger.infrastructure.clients.events import LedgerEventClient
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.infrastructure.observability.logging import log_ledger_operation
from budget_ledger.infrastructure.observability.metrics import record_operation
from budget_ledger.services.installments import InstallmentScheduler

router = APIRouter()


@router.post("/cost-centers/{cost_center_id}/installments", response_model=InstallmentResponse, status_code=201)
def create_installment(
    cost_center_id: uuid.UUID,
    request_body: InstallmentCreateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    event_client: LedgerEventClient = Depends(get_event_client),
):
    """
    Create an installment with its whole monthly schedule.

    Payments 1..N-1 carry total // N, the last payment absorbs the remainder,
    so the schedule always sums to the total.
    """
    start_time = time.time()
    request.state.operation = "create_installment"

    installment = InstallmentScheduler(db).create_installment(
        cost_center_id,
        request_body.wallet_id,
        request_body.description,
        request_body.total_amount_cents,
        request_body.total_installments,
        request_body.start_date,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_operation("create_installment", request_body.total_amount_cents)
    log_ledger_operation(
        get_request_id(request),
        "create_installment",
        str(cost_center_id),
        duration_ms,
        installment_id=str(installment.id),
        total_installments=request_body.total_installments,
        amount_cents=request_body.total_amount_cents,
    )
    publish_event(
        background_tasks,
        event_client,
        "INSTALLMENT_CREATED",
        cost_center_id=cost_center_id,
        installment_id=installment.id,
        wallet_id=request_body.wallet_id,
        total_amount_cents=request_body.total_amount_cents,
        total_installments=request_body.total_installments,
    )

    return installment


@router.get("/cost-centers/{cost_center_id}/installments", response_model=List[InstallmentSummaryResponse])
def list_installments(
    cost_center_id: uuid.UUID,
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    return InstallmentScheduler(db).list_installments(cost_center_id, active_only=active_only)


@router.get("/cost-centers/{cost_center_id}/installments/{installment_id}", response_model=InstallmentResponse)
def get_installment(cost_center_id: uuid.UUID, installment_id: uuid.UUID, db: Session = Depends(get_db)):
    return InstallmentScheduler(db).get_installment(cost_center_id, installment_id)


@router.post(
    "/cost-centers/{cost_center_id}/installments/{installment_id}/cancel",
    response_model=InstallmentSummaryResponse,
)
def cancel_installment(
    cost_center_id: uuid.UUID,
    installment_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
):
    request.state.operation = "cancel_installment"
    return InstallmentScheduler(db).cancel_installment(cost_center_id, installment_id)


@router.get(
    "/cost-centers/{cost_center_id}/installment-payments/upcoming",
    response_model=List[UpcomingPaymentResponse],
)
def list_upcoming_payments(
    cost_center_id: uuid.UUID,
    within_days: Optional[int] = Query(None, ge=0, le=3650),
    db: Session = Depends(get_db),
):
    """
    Unpaid payments of active installments due within the window, earliest first.

    Payments whose due date already passed are included and flagged overdue.
    """
    if within_days is None:
        within_days = settings.upcoming_payments_default_days
    today = date.today()
    payments = InstallmentScheduler(db).list_upcoming_payments(cost_center_id, within_days, today=today)
    return [
        UpcomingPaymentResponse(
            **InstallmentPaymentResponse.model_validate(payment).model_dump(),
            installment_description=payment.installment.description,
            total_installments=payment.installment.total_installments,
            overdue=payment.due_date < today,
        )
        for payment in payments
    ]


@router.post(
    "/cost-centers/{cost_center_id}/installment-payments/{payment_id}/pay",
    response_model=PaymentPaidResponse,
)
def mark_payment_as_paid(
    cost_center_id: uuid.UUID,
    payment_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    event_client: LedgerEventClient = Depends(get_event_client),
):
    """Mark one scheduled payment paid; repeating the call changes nothing"""
    start_time = time.time()
    request.state.operation = "mark_payment_paid"

    payment, changed = InstallmentScheduler(db).mark_payment_as_paid(cost_center_id, payment_id)
    installment = payment.installment

    # A repeated call committed nothing
    if changed:
        duration_ms = (time.time() - start_time) * 1000
        record_operation("mark_payment_paid", payment.amount_cents)
        log_ledger_operation(
            get_request_id(request),
            "mark_payment_paid",
            str(cost_center_id),
            duration_ms,
            installment_id=str(installment.id),
            payment_number=payment.payment_number,
            paid_installments=installment.paid_installments,
        )
        publish_event(
            background_tasks,
            event_client,
            "INSTALLMENT_PAYMENT_PAID",
            cost_center_id=cost_center_id,
            installment_id=installment.id,
            payment_id=payment.id,
            payment_number=payment.payment_number,
            amount_cents=payment.amount_cents,
            installment_status=installment.status,
        )

    return PaymentPaidResponse(
        payment=InstallmentPaymentResponse.model_validate(payment),
        installment=InstallmentSummaryResponse.model_validate(installment),
    )
