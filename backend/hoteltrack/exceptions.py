"""
领域异常

所有服务层错误都继承 DomainError（ValueError 子类），
携带一个简短的机器可读 code，由路由层映射为 HTTP 响应。
"""
from typing import Any, Dict, Optional


class DomainError(ValueError):
    """
    领域错误基类

    Attributes:
        message: 可读错误信息
        code: 机器可读错误码（前端据此展示提示）
        status_code: 对应的 HTTP 状态码
        details: 附加上下文
    """

    code = "error"
    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code='{self.code}', message='{self.message}')"


class ValidationError(DomainError):
    """必填字段缺失或格式不合法"""
    code = "missing"
    default_message = "Fill out all fields."


class ParseError(DomainError):
    """日期时间无法解析"""
    code = "invalid_date"
    default_message = "Check-in date/time could not be read."


class PastDateError(DomainError):
    code = "past"
    default_message = "Check-in must be today or later."


class CapacityError(DomainError):
    code = "pax"
    default_message = "Pax exceeds room capacity."


class ConflictError(DomainError):
    """与房间上的有效预订时间段重叠"""
    code = "conflict"
    status_code = 409
    default_message = "Room is not available for those dates."


class DuplicateError(DomainError):
    code = "duplicate"
    status_code = 409
    default_message = "Record already exists."


class InUseError(DomainError):
    """仍被有效预订引用，不能删除"""
    code = "inuse"
    status_code = 409
    default_message = "Room has active bookings."


class AgeError(DomainError):
    code = "age"
    default_message = "Guest must be 18+."


class ContactFormatError(DomainError):
    code = "contact"
    default_message = "Contact must be 11 digits and start with 09."


class AuthError(DomainError):
    """用户名/密码错误或账号停用"""
    code = "invalid"
    status_code = 401
    default_message = "Invalid username or password."


class ForbiddenError(DomainError):
    code = "forbidden"
    status_code = 403
    default_message = "Admin access required."


class NotFoundError(DomainError):
    code = "notfound"
    status_code = 404
    default_message = "Record not found."
