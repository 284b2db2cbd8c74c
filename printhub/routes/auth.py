# printhub/routes/auth.py
import hmac

from flask import Blueprint, current_app, jsonify, session

from printhub.db.session import get_session
from printhub.db.enums import AuditEntityType, UserRole
from printhub.services.user_service import UserService
from printhub.services.audit_log_service import AuditLogService
from printhub.schemas.common_dto import UserDTO
from printhub.routes.common import current_user, json_body
from printhub.errors import PermissionDeniedError, ValidationError
from printhub.logger import get_logger

logger = get_logger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

ADMIN_MIN_PASSWORD_LENGTH = 8


def _start_session(user):
    session.clear()
    session['user_id'] = user.id
    session['user_role'] = user.role.value
    session['user_name'] = user.name


@auth_bp.route('/register', methods=['POST'])
def register():
    """学生注册"""
    payload = json_body()

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.create_user(
            name=payload.get('name'),
            email=payload.get('email'),
            password=payload.get('password'),
        )
        AuditLogService(db).record_create(
            entity_type=AuditEntityType.User,
            entity_id=user.id,
            operator_id=user.id,
        )
        db.commit()

        _start_session(user)
        logger.info(f"Student registered: {user.email}")
        return jsonify({
            "message": "Registration successful",
            "user": UserDTO.from_orm_model(user).model_dump(mode="json"),
        }), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@auth_bp.route('/admin-register', methods=['POST'])
def admin_register():
    """Admin registration, gated by the shared ADMIN_KEY"""
    payload = json_body()

    valid_admin_key = current_app.config.get('ADMIN_KEY')
    if not valid_admin_key:
        logger.error("ADMIN_KEY not configured, admin registration refused")
        raise PermissionDeniedError("Admin registration is disabled")

    admin_key = payload.get('adminKey') or ''
    if not isinstance(admin_key, str) or not hmac.compare_digest(admin_key.encode("utf-8"), valid_admin_key.encode("utf-8")):
        raise ValidationError('adminKey', 'Invalid admin key')

    password = payload.get('password') or ''
    if not isinstance(password, str) or len(password) < ADMIN_MIN_PASSWORD_LENGTH:
        raise ValidationError('password', f'Password must be at least {ADMIN_MIN_PASSWORD_LENGTH} characters long')

    db = get_session()
    try:
        user = UserService(db).create_user(
            name=payload.get('name'),
            email=payload.get('email'),
            password=password,
            role=UserRole.admin,
        )
        AuditLogService(db).record_create(
            entity_type=AuditEntityType.User,
            entity_id=user.id,
            operator_id=user.id,
        )
        db.commit()

        _start_session(user)
        logger.info(f"Admin registered: {user.email}")
        return jsonify({
            "message": "Admin account created successfully",
            "user": UserDTO.from_orm_model(user).model_dump(mode="json"),
        }), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@auth_bp.route('/login', methods=['POST'])
def login():
    """登录"""
    payload = json_body()
    email = payload.get('email')
    password = payload.get('password')
    email = email.strip() if isinstance(email, str) else ''
    if not email or not isinstance(password, str) or not password:
        raise ValidationError('email' if not email else 'password', 'Email and password are required')

    db = get_session()
    try:
        user = UserService(db).authenticate(email=email, password=password)
        db.commit()

        _start_session(user)
        logger.info(f"User logged in: {user.email}")
        return jsonify({
            "message": "Login successful",
            "user": UserDTO.from_orm_model(user).model_dump(mode="json"),
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """登出"""
    session.clear()
    return jsonify({"message": "Logged out"})


@auth_bp.route('/profile', methods=['GET'])
def profile():
    db = get_session()
    try:
        user = current_user(db)
        return jsonify(UserDTO.from_orm_model(user).model_dump(mode="json"))
    finally:
        db.close()
