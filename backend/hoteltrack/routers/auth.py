"""
认证路由
"""
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from hoteltrack.database import get_db
from hoteltrack.exceptions import DomainError
from hoteltrack.models.ontology import StaffUser
from hoteltrack.models.schemas import (
    LoginRequest, LoginResponse, PasswordChange, StaffResponse, OutcomeResponse
)
from hoteltrack.services.staff_service import StaffService
from hoteltrack.security.auth import (
    get_current_user, create_session_token, set_session_cookie, clear_session_cookie
)

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """用户登录，令牌同时写入 HTTP-only cookie"""
    service = StaffService(db)
    try:
        user = service.authenticate(data.username, data.password)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    token = create_session_token(user)
    set_session_cookie(response, token)
    return LoginResponse(access_token=token, user=StaffResponse.model_validate(user))


@router.post("/logout")
def logout(response: Response):
    """退出登录"""
    clear_session_cookie(response)
    return {"outcome": "logged_out"}


@router.get("/me", response_model=StaffResponse)
def get_current_user_info(current_user: StaffUser = Depends(get_current_user)):
    """获取当前用户信息"""
    return current_user


@router.post("/change-password", response_model=OutcomeResponse)
def change_password(
    data: PasswordChange,
    current_user: StaffUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """修改密码"""
    service = StaffService(db)
    try:
        service.change_password(current_user.id, data)
        return OutcomeResponse(outcome="updated", id=current_user.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
