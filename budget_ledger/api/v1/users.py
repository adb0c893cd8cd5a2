"""Users and the cost centers they belong to"""

import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import UserCreateRequest, UserResponse, UserCostCenterItem, CostCenterResponse
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.services.cost_centers import CostCenterDirectory

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request_body: UserCreateRequest, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).create_user(request_body.name, request_body.email)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).get_user(user_id)


@router.get("/users/{user_id}/cost-centers", response_model=List[UserCostCenterItem])
def list_user_cost_centers(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Every cost center the user administers, belongs to, or asked to join"""
    return [
        UserCostCenterItem(
            cost_center=CostCenterResponse.model_validate(cost_center),
            role=membership.role,
            status=membership.status,
        )
        for cost_center, membership in CostCenterDirectory(db).list_user_cost_centers(user_id)
    ]
