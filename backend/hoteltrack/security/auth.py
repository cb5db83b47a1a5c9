"""
认证与授权模块

会话凭证为 HS256 JWT，7 天有效，放在 HTTP-only cookie 中；
API 客户端也可以通过 Authorization: Bearer 头传递。
"""
import bcrypt
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from hoteltrack.config import settings
from hoteltrack.database import get_db
from hoteltrack.exceptions import ForbiddenError
from hoteltrack.models.ontology import StaffUser, StaffRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class SessionUser:
    """令牌中携带的会话用户"""
    id: int
    username: str
    role: StaffRole
    full_name: str


def get_password_hash(password: str) -> str:
    """密码哈希"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # 库中的哈希格式损坏
        return False


def create_session_token(user) -> str:
    """签发会话令牌（StaffUser 或 SessionUser 均可）"""
    role = user.role.value if isinstance(user.role, StaffRole) else str(user.role)
    expire = datetime.now(timezone.utc) + timedelta(days=settings.SESSION_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user.id),
        "username": user.username,
        "role": role,
        "full_name": user.full_name,
        "iat": datetime.now(timezone.utc),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_session_token(token: Optional[str]) -> Optional[SessionUser]:
    """校验令牌，失败返回 None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return SessionUser(
            id=int(payload["sub"]),
            username=payload.get("username", ""),
            role=StaffRole(payload.get("role", StaffRole.STAFF.value)),
            full_name=payload.get("full_name", ""),
        )
    except (JWTError, KeyError, ValueError):
        return None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 3600,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _extract_token(request: Request,
                   credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> StaffUser:
    """获取当前登录用户"""
    session_user = verify_session_token(_extract_token(request, credentials))
    if session_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "message": "Sign in required."}
        )

    user = db.query(StaffUser).filter(StaffUser.id == session_user.id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "message": "Account no longer exists."}
        )

    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "inactive", "message": "This account is disabled."}
        )

    return user


async def require_admin(current_user: StaffUser = Depends(get_current_user)) -> StaffUser:
    """仅管理员可访问"""
    if current_user.role != StaffRole.ADMIN:
        logger.info(f"Staff user {current_user.username} denied admin-only route")
        error = ForbiddenError()
        raise HTTPException(status_code=error.status_code, detail=error.to_dict())
    return current_user
