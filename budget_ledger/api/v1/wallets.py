"""Wallets of a cost center and transfers between them"""

import time
import uuid
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import TransferRequest, TransferResponse, WalletCreateRequest, WalletResponse
from budget_ledger.api.dependencies import get_event_client, get_request_id, publish_event
from budget_ledger.infrastructure.clients.events import LedgerEventClient
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.infrastructure.observability.logging import log_ledger_operation
from budget_ledger.infrastructure.observability.metrics import record_operation
from budget_ledger.services.cost_centers import CostCenterDirectory
from budget_ledger.services.transfers import TransferCoordinator

router = APIRouter()


@router.get("/cost-centers/{cost_center_id}/wallets", response_model=List[WalletResponse])
def list_wallets(cost_center_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).list_wallets(cost_center_id)


@router.post("/cost-centers/{cost_center_id}/wallets", response_model=WalletResponse, status_code=201)
def create_wallet(
    cost_center_id: uuid.UUID,
    request_body: WalletCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    request.state.operation = "create_wallet"
    return CostCenterDirectory(db).create_wallet(
        cost_center_id,
        request_body.user_id,
        name=request_body.name,
        type=request_body.type,
        opening_balance_cents=request_body.opening_balance_cents,
        is_default=request_body.is_default,
        color=request_body.color,
        icon=request_body.icon,
    )


@router.get("/cost-centers/{cost_center_id}/wallets/{wallet_id}", response_model=WalletResponse)
def get_wallet(cost_center_id: uuid.UUID, wallet_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).get_wallet(cost_center_id, wallet_id)


@router.delete("/cost-centers/{cost_center_id}/wallets/{wallet_id}", status_code=204)
def delete_wallet(cost_center_id: uuid.UUID, wallet_id: uuid.UUID, db: Session = Depends(get_db)):
    CostCenterDirectory(db).delete_wallet(cost_center_id, wallet_id)
    return Response(status_code=204)


@router.post("/cost-centers/{cost_center_id}/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    cost_center_id: uuid.UUID,
    request_body: TransferRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    event_client: LedgerEventClient = Depends(get_event_client),
):
    """
    Move funds between two wallets of the cost center.

    Both wallet balances and both transfer legs are committed together or not
    at all; the response carries the shared transfer_pair_id.
    """
    start_time = time.time()
    request.state.operation = "transfer"

    result = TransferCoordinator(db).transfer(
        cost_center_id,
        request_body.user_id,
        request_body.from_wallet_id,
        request_body.to_wallet_id,
        request_body.amount_cents,
        request_body.description,
        transfer_date=request_body.date,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_operation("transfer", request_body.amount_cents)
    log_ledger_operation(
        get_request_id(request),
        "transfer",
        str(cost_center_id),
        duration_ms,
        transfer_pair_id=str(result.transfer_pair_id),
        amount_cents=request_body.amount_cents,
    )
    publish_event(
        background_tasks,
        event_client,
        "TRANSFER_COMPLETED",
        cost_center_id=cost_center_id,
        transfer_pair_id=result.transfer_pair_id,
        from_wallet_id=request_body.from_wallet_id,
        to_wallet_id=request_body.to_wallet_id,
        amount_cents=request_body.amount_cents,
    )

    return TransferResponse.model_validate(result, from_attributes=True)
