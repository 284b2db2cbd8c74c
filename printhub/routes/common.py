# printhub/routes/common.py
from typing import Any, Dict

from flask import request, session
from sqlalchemy.orm import Session

from printhub.models.user import User
from printhub.services.user_service import UserService
from printhub.db.enums import UserRole
from printhub.errors import AuthenticationError, PermissionDeniedError, ValidationError


def require_login() -> str:
    """检查登录状态, returns the session user id"""
    user_id = session.get("user_id")
    if not user_id:
        raise AuthenticationError()
    return user_id


def require_admin() -> str:
    user_id = require_login()
    if session.get("user_role") != UserRole.admin.value:
        raise PermissionDeniedError()
    return user_id


def current_user(db: Session) -> User:
    '''User behind the session; a session pointing at a deleted user is cleared'''
    user_id = require_login()
    user = UserService(db).get_user_by_id(user_id)
    if user is None:
        session.clear()
        raise AuthenticationError()
    return user


def json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("body", "JSON object expected")
    return payload
