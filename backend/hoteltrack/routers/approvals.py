"""
审批队列路由
列表与处理仅限管理员；待审批数量对所有员工可见
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser
from hoteltrack.models.schemas import (
    ApprovalRequestResponse, ApprovalCountResponse, OutcomeResponse
)
from hoteltrack.services.approval_service import ApprovalService
from hoteltrack.security.auth import get_current_user, require_admin

router = APIRouter(tags=["审批"])


@router.get("/approvals", response_model=List[ApprovalRequestResponse])
def list_pending_approvals(
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """待审批请求（新的在前）"""
    service = ApprovalService(db)
    return [ApprovalRequestResponse(**service.get_request_detail(r)) for r in service.list_pending()]


@router.get("/approval-count", response_model=ApprovalCountResponse)
def approval_count(
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(get_current_user)
):
    """待审批数量"""
    service = ApprovalService(db)
    return ApprovalCountResponse(count=service.pending_count())


@router.post("/approvals/{request_id}/approve", response_model=OutcomeResponse)
def approve_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """批准并执行"""
    service = ApprovalService(db)
    try:
        request = service.approve(request_id, current_user)
        return OutcomeResponse(outcome="approved", id=request.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/approvals/{request_id}/reject", response_model=OutcomeResponse)
def reject_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: StaffUser = Depends(require_admin)
):
    """驳回"""
    service = ApprovalService(db)
    try:
        request = service.reject(request_id, current_user)
        return OutcomeResponse(outcome="rejected", id=request.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
