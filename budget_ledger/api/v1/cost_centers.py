"""Cost centers, join codes and membership approval"""

import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from budget_ledger.api.v1.schemas import (
    CostCenterCreateRequest,
    CostCenterResponse,
    JoinRequest,
    MembershipResponse,
    PendingMembershipResponse,
)
from budget_ledger.infrastructure.database.session import get_db
from budget_ledger.services.cost_centers import CostCenterDirectory

router = APIRouter()


@router.post("/cost-centers", response_model=CostCenterResponse, status_code=201)
def create_cost_center(request_body: CostCenterCreateRequest, db: Session = Depends(get_db)):
    """
    Create a shared budget. The creator becomes its approved admin and a
    default wallet is opened with a zero balance.
    """
    return CostCenterDirectory(db).create_cost_center(
        admin_user_id=request_body.admin_user_id,
        name=request_body.name,
        description=request_body.description,
        code=request_body.code,
    )


@router.get("/cost-centers/{cost_center_id}", response_model=CostCenterResponse)
def get_cost_center(cost_center_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).get_cost_center(cost_center_id)


@router.post("/cost-centers/join", response_model=MembershipResponse, status_code=201)
def join_cost_center(request_body: JoinRequest, db: Session = Depends(get_db)):
    """Request membership with a join code; the admin approves or rejects it"""
    return CostCenterDirectory(db).join_cost_center(request_body.user_id, request_body.code)


@router.get("/cost-centers/{cost_center_id}/memberships/pending", response_model=List[PendingMembershipResponse])
def list_pending_memberships(cost_center_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).list_pending_memberships(cost_center_id)


@router.post(
    "/cost-centers/{cost_center_id}/memberships/{membership_id}/approve",
    response_model=MembershipResponse,
)
def approve_membership(cost_center_id: uuid.UUID, membership_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).approve_membership(cost_center_id, membership_id)


@router.post(
    "/cost-centers/{cost_center_id}/memberships/{membership_id}/reject",
    response_model=MembershipResponse,
)
def reject_membership(cost_center_id: uuid.UUID, membership_id: uuid.UUID, db: Session = Depends(get_db)):
    return CostCenterDirectory(db).reject_membership(cost_center_id, membership_id)
