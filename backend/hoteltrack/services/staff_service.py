"""
员工服务 - 本体操作层
管理 StaffUser 对象：登录认证、账号维护、密码
"""
from typing import List, Optional
import logging
from sqlalchemy.orm import Session

from hoteltrack.exceptions import (
    ValidationError, DuplicateError, AuthError, NotFoundError
)
from hoteltrack.models.ontology import StaffUser, StaffRole
from hoteltrack.models.schemas import StaffCreate, StaffUpdate, PasswordReset, PasswordChange
from hoteltrack.security.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class StaffService:
    """员工服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_staff_users(self, role: Optional[StaffRole] = None,
                        active: Optional[bool] = None) -> List[StaffUser]:
        """获取员工列表"""
        query = self.db.query(StaffUser)
        if role is not None:
            query = query.filter(StaffUser.role == role)
        if active is not None:
            query = query.filter(StaffUser.active == active)
        return query.order_by(StaffUser.created_at.desc(), StaffUser.id.desc()).all()

    def get_staff_user(self, user_id: int) -> Optional[StaffUser]:
        return self.db.query(StaffUser).filter(StaffUser.id == user_id).first()

    def get_by_username(self, username: str) -> Optional[StaffUser]:
        return self.db.query(StaffUser).filter(StaffUser.username == username).first()

    def _require_user(self, user_id: int) -> StaffUser:
        user = self.get_staff_user(user_id)
        if not user:
            raise NotFoundError("Staff account not found.")
        return user

    def authenticate(self, username: str, password: str) -> StaffUser:
        """
        认证登录

        Raises:
            AuthError: 用户不存在或密码错误 (invalid)，账号停用 (inactive)
        """
        username = (username or "").strip()
        user = self.get_by_username(username) if username else None
        if not user or not password or not verify_password(password, user.password_hash):
            logger.info(f"Failed login attempt for '{username}'")
            raise AuthError()

        if not user.active:
            logger.info(f"Login refused for disabled account '{username}'")
            raise AuthError("This account is disabled.", code="inactive")

        logger.info(f"Staff user {user.username} signed in")
        return user

    def create_staff_user(self, data: StaffCreate) -> StaffUser:
        """创建员工账号"""
        full_name = (data.full_name or "").strip()
        username = (data.username or "").strip()
        if not full_name or not username or not data.password:
            raise ValidationError()

        if self.get_by_username(username):
            raise DuplicateError("Username already exists.")

        user = StaffUser(
            username=username,
            full_name=full_name,
            password_hash=get_password_hash(data.password),
            role=data.role,
            active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Staff account {user.username} created ({user.role.value})")
        return user

    def update_staff_user(self, user_id: int, data: StaffUpdate) -> StaffUser:
        """更新员工姓名、用户名、角色和启用状态"""
        full_name = (data.full_name or "").strip()
        username = (data.username or "").strip()
        if not full_name or not username:
            raise ValidationError()

        user = self._require_user(user_id)
        existing = self.db.query(StaffUser).filter(
            StaffUser.username == username,
            StaffUser.id != user_id
        ).first()
        if existing:
            raise DuplicateError("Username already exists.")

        user.full_name = full_name
        user.username = username
        user.role = data.role
        user.active = data.active

        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_staff_user(self, user_id: int, actor: StaffUser) -> bool:
        """删除员工账号；不能删除自己"""
        if actor is not None and actor.id == user_id:
            raise ValidationError("You cannot delete your own account.", code="self")

        user = self._require_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Staff account {user_id} deleted by {actor.username if actor else 'system'}")
        return True

    def reset_password(self, user_id: int, data: PasswordReset) -> bool:
        """管理员重置密码"""
        user = self._require_user(user_id)
        user.password_hash = get_password_hash(data.new_password)
        self.db.commit()
        logger.info(f"Password reset for staff account {user.username}")
        return True

    def change_password(self, user_id: int, data: PasswordChange) -> bool:
        """修改自己的密码"""
        user = self._require_user(user_id)
        if not verify_password(data.old_password, user.password_hash):
            raise ValidationError("Current password is incorrect.", code="invalid")

        user.password_hash = get_password_hash(data.new_password)
        self.db.commit()
        return True
