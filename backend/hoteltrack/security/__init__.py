# Security module
from hoteltrack.security.auth import (
    get_password_hash, verify_password, create_session_token,
    verify_session_token, get_current_user, require_admin
)

__all__ = [
    'get_password_hash', 'verify_password', 'create_session_token',
    'verify_session_token', 'get_current_user', 'require_admin'
]
