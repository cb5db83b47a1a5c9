"""
审批服务 - 延迟执行的特权操作

非管理员发起的删除不会立即执行，而是记录为待审批请求；
管理员批准后才执行原删除操作的完整副作用链。

请求只保存操作标签 + 实体 ID + 可选 payload，具体执行逻辑由
ApprovalActionRegistry 中注册的 (apply, describe) 处理器提供，
新增可延迟的操作类型无需修改队列本身。

Usage:
    registry = get_approval_registry()
    registry.register("booking_delete", apply=..., describe=...)

    service = ApprovalService(db)
    request = service.submit("booking_delete", booking_id, requester)
    service.approve(request.id, admin)
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging
from sqlalchemy.orm import Session

from hoteltrack.exceptions import ValidationError, NotFoundError
from hoteltrack.models.ontology import (
    ApprovalRequest, ApprovalStatus, StaffUser
)
from hoteltrack.services.time_service import utc_now, format_display

logger = logging.getLogger(__name__)

# apply(db, entity_id, payload) -> 目标是否存在
ApplyHandler = Callable[[Session, int, Dict[str, Any]], bool]
# describe(db, entity_id, payload) -> (label, detail)
DescribeHandler = Callable[[Session, int, Dict[str, Any]], Tuple[str, str]]


@dataclass
class ApprovalAction:
    """一种可延迟的操作"""
    tag: str
    apply: ApplyHandler
    describe: DescribeHandler


class ApprovalActionRegistry:
    """操作标签 -> 处理器"""

    def __init__(self):
        self._actions: Dict[str, ApprovalAction] = {}

    def register(self, tag: str, apply: ApplyHandler, describe: DescribeHandler) -> None:
        tag = getattr(tag, "value", tag)
        if tag in self._actions:
            logger.warning(f"Approval action '{tag}' re-registered")
        self._actions[tag] = ApprovalAction(tag=tag, apply=apply, describe=describe)

    def get(self, tag: str) -> Optional[ApprovalAction]:
        return self._actions.get(getattr(tag, "value", tag))

    def list_actions(self) -> List[str]:
        return sorted(self._actions)


# Global registry instance
_approval_registry: Optional[ApprovalActionRegistry] = None


def _create_approval_registry() -> ApprovalActionRegistry:
    """创建注册中心并注册内置的删除操作"""
    registry = ApprovalActionRegistry()

    from hoteltrack.services import booking_service, guest_service

    booking_service.register_booking_actions(registry)
    guest_service.register_guest_actions(registry)

    logger.info(f"ApprovalActionRegistry initialized with {len(registry.list_actions())} actions")
    return registry


def get_approval_registry() -> ApprovalActionRegistry:
    global _approval_registry
    if _approval_registry is None:
        _approval_registry = _create_approval_registry()
    return _approval_registry


def _load_payload(request: ApprovalRequest) -> Dict[str, Any]:
    if not request.payload:
        return {}
    try:
        return json.loads(request.payload)
    except (TypeError, ValueError):
        logger.warning(f"Approval request {request.id} has unreadable payload")
        return {}


class ApprovalService:
    """审批队列"""

    def __init__(self, db: Session, registry: Optional[ApprovalActionRegistry] = None):
        self.db = db
        self.registry = registry or get_approval_registry()

    def get_request(self, request_id: int) -> Optional[ApprovalRequest]:
        return self.db.query(ApprovalRequest).filter(ApprovalRequest.id == request_id).first()

    def list_pending(self) -> List[ApprovalRequest]:
        """待审批请求，新的在前"""
        return self.db.query(ApprovalRequest).filter(
            ApprovalRequest.status == ApprovalStatus.PENDING
        ).order_by(ApprovalRequest.created_at.desc(), ApprovalRequest.id.desc()).all()

    def pending_count(self) -> int:
        return self.db.query(ApprovalRequest).filter(
            ApprovalRequest.status == ApprovalStatus.PENDING
        ).count()

    def submit(self, request_type: str, entity_id: int, requester: StaffUser,
               payload: Optional[Dict[str, Any]] = None, commit: bool = True) -> ApprovalRequest:
        """
        提交待审批请求
        同一实体允许存在多条待审批请求，不做去重
        """
        action = self.registry.get(request_type)
        if action is None:
            raise ValidationError(f"Unknown request type '{request_type}'.")
        if not entity_id:
            raise ValidationError("Missing request data.")

        request = ApprovalRequest(
            request_type=action.tag,
            entity_id=entity_id,
            payload=json.dumps(payload, default=str) if payload else None,
            requested_by=requester.id if requester is not None else None,
            status=ApprovalStatus.PENDING,
            created_at=utc_now(),
        )
        self.db.add(request)
        if commit:
            self.db.commit()
            self.db.refresh(request)
        else:
            self.db.flush()

        logger.info(
            f"Approval request {request.id} ({action.tag} #{entity_id}) submitted by "
            f"{requester.username if requester is not None else 'unknown'}"
        )
        return request

    def _require_pending(self, request_id: int) -> ApprovalRequest:
        request = self.get_request(request_id)
        if not request:
            raise NotFoundError("Approval request not found.")
        if request.status != ApprovalStatus.PENDING:
            raise ValidationError(f"Request already {request.status.value}.")
        return request

    def _resolve(self, request: ApprovalRequest, status: ApprovalStatus,
                 actor: Optional[StaffUser]) -> None:
        request.status = status
        request.resolved_at = utc_now()
        request.resolved_by = actor.id if actor is not None else None

    def approve(self, request_id: int, actor: Optional[StaffUser]) -> ApprovalRequest:
        """
        批准请求并执行对应操作

        目标实体已不存在时视为空操作，请求仍标记为 approved
        """
        request = self._require_pending(request_id)
        action = self.registry.get(request.request_type)
        if action is None:
            raise ValidationError(f"Unknown request type '{request.request_type}'.")

        found = action.apply(self.db, request.entity_id, _load_payload(request))
        if not found:
            logger.warning(
                f"Approval request {request.id}: {request.request_type} target "
                f"#{request.entity_id} no longer exists"
            )

        self._resolve(request, ApprovalStatus.APPROVED, actor)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Approval request {request.id} approved")
        return request

    def reject(self, request_id: int, actor: Optional[StaffUser]) -> ApprovalRequest:
        """驳回请求，不改动目标实体"""
        request = self._require_pending(request_id)
        self._resolve(request, ApprovalStatus.REJECTED, actor)
        self.db.commit()
        self.db.refresh(request)
        logger.info(f"Approval request {request.id} rejected")
        return request

    def describe(self, request: ApprovalRequest) -> Tuple[str, str]:
        action = self.registry.get(request.request_type)
        if action is None:
            return request.request_type, f"#{request.entity_id}"
        return action.describe(self.db, request.entity_id, _load_payload(request))

    def get_request_detail(self, request: ApprovalRequest) -> dict:
        """审批列表展示用"""
        label, detail = self.describe(request)
        return {
            'id': request.id,
            'request_type': request.request_type,
            'entity_id': request.entity_id,
            'status': request.status,
            'requested_by': request.requested_by,
            'requester_name': request.requester.full_name if request.requester else None,
            'label': label,
            'detail': detail,
            'created_at': request.created_at,
            'created_at_display': format_display(request.created_at),
            'resolved_at': request.resolved_at,
        }
