"""Credit cards: purchases charged against the limit and bill payments"""

import time
import uuid
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import (
    BillPaymentRequest,
    BillPaymentResponse,
    ChargeRequest,
    ChargeResponse,
    CreditCardCreateRequest,
    CreditCardResponse,
)
from budget_ledger.api.dependencies import get_event_client, get_request_id, publish_event
from budget_ledger.infrastructure.clients.events import LedgerEventClient
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.infrastructure.observability.logging import log_ledger_operation
from budget_ledger.infrastructure.observability.metrics import record_operation
from budget_ledger.services.cost_centers import CostCenterDirectory
from budget_ledger.services.credit_cards import CreditCardEngine

router = APIRouter()


@router.get("/cost-centers/{cost_center_id}/credit-cards", response_model=List[CreditCardResponse])
def list_credit_cards(cost_center_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).list_credit_cards(cost_center_id)


@router.post("/cost-centers/{cost_center_id}/credit-cards", response_model=CreditCardResponse, status_code=201)
def create_credit_card(
    cost_center_id: uuid.UUID,
    request_body: CreditCardCreateRequest,
    db: Session = Depends(get_db),
):
    return CostCenterDirectory(db).create_credit_card(
        cost_center_id,
        name=request_body.name,
        limit_cents=request_body.limit_cents,
        due_day=request_body.due_day,
        closing_day=request_body.closing_day,
        color=request_body.color,
        icon=request_body.icon,
    )


@router.post(
    "/cost-centers/{cost_center_id}/credit-cards/{card_id}/charges",
    response_model=ChargeResponse,
    status_code=201,
)
def charge_for_purchase(
    cost_center_id: uuid.UUID,
    card_id: uuid.UUID,
    request_body: ChargeRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    event_client: LedgerEventClient = Depends(get_event_client),
):
    """Charge a purchase to the card; refused with 409 when it would pass the limit"""
    start_time = time.time()
    request.state.operation = "charge"

    result = CreditCardEngine(db).charge_for_purchase(
        cost_center_id,
        request_body.user_id,
        card_id,
        request_body.amount_cents,
        request_body.description,
        category_id=request_body.category_id,
        purchase_date=request_body.date,
        notes=request_body.notes,
        installment_payment_id=request_body.installment_payment_id,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_operation("charge", request_body.amount_cents)
    log_ledger_operation(
        get_request_id(request),
        "charge",
        str(cost_center_id),
        duration_ms,
        credit_card_id=str(card_id),
        transaction_id=str(result.transaction.id),
        amount_cents=request_body.amount_cents,
    )
    publish_event(
        background_tasks,
        event_client,
        "CARD_CHARGED",
        cost_center_id=cost_center_id,
        credit_card_id=card_id,
        transaction_id=result.transaction.id,
        amount_cents=request_body.amount_cents,
    )

    return ChargeResponse.model_validate(result, from_attributes=True)


@router.post(
    "/cost-centers/{cost_center_id}/credit-cards/{card_id}/payments",
    response_model=BillPaymentResponse,
    status_code=201,
)
def pay_bill(
    cost_center_id: uuid.UUID,
    card_id: uuid.UUID,
    request_body: BillPaymentRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    event_client: LedgerEventClient = Depends(get_event_client),
):
    """Pay down the card from a wallet; the amount may not exceed what is owed"""
    start_time = time.time()
    request.state.operation = "pay_bill"

    result = CreditCardEngine(db).pay_bill(
        cost_center_id,
        request_body.user_id,
        card_id,
        request_body.amount_cents,
        request_body.from_wallet_id,
        payment_date=request_body.date,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_operation("pay_bill", request_body.amount_cents)
    log_ledger_operation(
        get_request_id(request),
        "pay_bill",
        str(cost_center_id),
        duration_ms,
        credit_card_id=str(card_id),
        wallet_id=str(request_body.from_wallet_id),
        amount_cents=request_body.amount_cents,
    )
    publish_event(
        background_tasks,
        event_client,
        "BILL_PAID",
        cost_center_id=cost_center_id,
        credit_card_id=card_id,
        wallet_id=request_body.from_wallet_id,
        transaction_id=result.transaction.id,
        amount_cents=request_body.amount_cents,
    )

    return BillPaymentResponse.model_validate(result, from_attributes=True)
