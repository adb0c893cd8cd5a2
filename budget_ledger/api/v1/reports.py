"""Reports derived from the transaction log"""

import datetime as dt
import logging
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import (
    BalanceCheckResponse,
    CategoryTotalResponse,
    ReconciliationResponse,
    TotalsResponse,
    UserReportResponse,
)
from budget_ledger.api.dependencies import get_request_id
from budget_ledger.domain.models import CREDIT_EXPENSE, EXPENSE, INCOME
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.services.cost_centers import CostCenterDirectory
from budget_ledger.services.transaction_ledger import TransactionLedger

router = APIRouter()


@router.get("/cost-centers/{cost_center_id}/reports/totals", response_model=TotalsResponse)
def totals_by_type(
    cost_center_id: uuid.UUID,
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
    db: Session = Depends(get_db),
):
    """Sum of amounts per transaction type; net counts income against spending"""
    CostCenterDirectory(db).get_cost_center(cost_center_id)
    totals = TransactionLedger(db).totals_by_type(cost_center_id, start_date, end_date)
    return TotalsResponse(
        cost_center_id=cost_center_id,
        start_date=start_date,
        end_date=end_date,
        totals_cents=totals,
        net_cents=totals[INCOME] - totals[EXPENSE] - totals[CREDIT_EXPENSE],
    )


@router.get("/cost-centers/{cost_center_id}/reports/categories", response_model=List[CategoryTotalResponse])
def totals_by_category(
    cost_center_id: uuid.UUID,
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
    db: Session = Depends(get_db),
):
    return [
        CategoryTotalResponse.model_validate(total, from_attributes=True)
        for total in TransactionLedger(db).totals_by_category(cost_center_id, start_date, end_date)
    ]


@router.get("/cost-centers/{cost_center_id}/reports/users", response_model=List[UserReportResponse])
def user_report(cost_center_id: uuid.UUID, db: Session = Depends(get_db)):
    """Per approved member activity, most active first"""
    return [
        UserReportResponse.model_validate(summary, from_attributes=True)
        for summary in TransactionLedger(db).user_report(cost_center_id)
    ]


@router.get("/cost-centers/{cost_center_id}/reports/reconciliation", response_model=ReconciliationResponse)
def reconcile(cost_center_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Stored wallet and card balances compared with the signed sums of the log"""
    CostCenterDirectory(db).get_cost_center(cost_center_id)
    checks = TransactionLedger(db).reconcile(cost_center_id)

    drifted = [check for check in checks if not check.consistent]
    if drifted:
        logging.error(
            "Stored balances drifted from the transaction log",
            extra={
                "request_id": get_request_id(request),
                "cost_center_id": str(cost_center_id),
                "accounts": [str(check.account_id) for check in drifted],
            },
        )

    return ReconciliationResponse(
        cost_center_id=cost_center_id,
        consistent=not drifted,
        accounts=[BalanceCheckResponse.model_validate(check, from_attributes=True) for check in checks],
    )
