"""Income and expense categories of a cost center"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import CategoryCreateRequest, CategoryResponse, CategoryType
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.services.cost_centers import CostCenterDirectory

router = APIRouter()


@router.get("/cost-centers/{cost_center_id}/categories", response_model=List[CategoryResponse])
def list_categories(
    cost_center_id: uuid.UUID,
    type: Optional[CategoryType] = Query(None),
    db: Session = Depends(get_db),
):
    return CostCenterDirectory(db).list_categories(cost_center_id, type=type)


@router.post("/cost-centers/{cost_center_id}/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    cost_center_id: uuid.UUID,
    request_body: CategoryCreateRequest,
    db: Session = Depends(get_db),
):
    return CostCenterDirectory(db).create_category(
        cost_center_id,
        name=request_body.name,
        type=request_body.type,
        color=request_body.color,
        icon=request_body.icon,
        is_default=request_body.is_default,
    )
