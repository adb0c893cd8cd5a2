"""Transaction log: listing, wallet income/expense entries and amendments"""

import datetime as dt
import time
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import TransactionCreateRequest, TransactionResponse, TransactionUpdateRequest
from budget_ledger.api.dependencies import get_request_id
from budget_ledger.domain.models import INCOME, TRANSACTION_TYPES
from budget_ledger.domain.exceptions import InvalidTransactionError
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.infrastructure.observability.logging import log_ledger_operation
from budget_ledger.infrastructure.observability.metrics import record_operation
from budget_ledger.services.transaction_ledger import TransactionLedger

router = APIRouter()


@router.get("/cost-centers/{cost_center_id}/transactions", response_model=List[TransactionResponse])
def list_transactions(
    cost_center_id: uuid.UUID,
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
    type: Optional[str] = Query(None),
    wallet_id: Optional[uuid.UUID] = Query(None),
    credit_card_id: Optional[uuid.UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Transactions newest first, optionally filtered by period, type and account"""
    if type is not None and type not in TRANSACTION_TYPES:
        raise InvalidTransactionError(f"Unknown transaction type: {type}")
    return TransactionLedger(db).list_transactions(
        cost_center_id,
        start_date=start_date,
        end_date=end_date,
        type=type,
        wallet_id=wallet_id,
        credit_card_id=credit_card_id,
        limit=limit,
    )


@router.post("/cost-centers/{cost_center_id}/transactions", response_model=TransactionResponse, status_code=201)
def record_transaction(
    cost_center_id: uuid.UUID,
    request_body: TransactionCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Record wallet income or expense; the wallet balance moves with the log entry"""
    start_time = time.time()
    operation = "record_income" if request_body.type == INCOME else "record_expense"
    request.state.operation = operation

    ledger = TransactionLedger(db)
    if request_body.type == INCOME:
        if request_body.installment_payment_id is not None:
            raise InvalidTransactionError("Only expenses can settle an installment payment")
        record = ledger.record_income
        extra = {}
    else:
        record = ledger.record_expense
        extra = {"installment_payment_id": request_body.installment_payment_id}
    transaction = record(
        cost_center_id,
        request_body.user_id,
        request_body.wallet_id,
        request_body.amount_cents,
        request_body.description,
        category_id=request_body.category_id,
        date=request_body.date,
        notes=request_body.notes,
        is_fixed=request_body.is_fixed,
        **extra,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_operation(operation, request_body.amount_cents)
    log_ledger_operation(
        get_request_id(request),
        operation,
        str(cost_center_id),
        duration_ms,
        transaction_id=str(transaction.id),
        wallet_id=str(request_body.wallet_id),
        amount_cents=request_body.amount_cents,
    )

    return transaction


@router.get("/cost-centers/{cost_center_id}/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(cost_center_id: uuid.UUID, transaction_id: uuid.UUID, db: Session = Depends(get_db)):
    return TransactionLedger(db).get_transaction(cost_center_id, transaction_id)


@router.patch("/cost-centers/{cost_center_id}/transactions/{transaction_id}", response_model=TransactionResponse)
def amend_transaction(
    cost_center_id: uuid.UUID,
    transaction_id: uuid.UUID,
    request_body: TransactionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Edit description, notes, date or category; amounts and accounts never change"""
    request.state.operation = "amend"
    return TransactionLedger(db).amend(
        cost_center_id,
        transaction_id,
        request_body.model_dump(exclude_unset=True),
    )
