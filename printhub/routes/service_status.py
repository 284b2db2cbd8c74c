# printhub/routes/service_status.py
from flask import Blueprint, jsonify

from printhub.db.session import get_session
from printhub.services.service_status_service import ServiceStatusService
from printhub.services.audit_log_service import AuditLogService
from printhub.schemas.common_dto import ServiceStatusDTO
from printhub.routes.common import require_admin, json_body
from printhub.errors import UpstreamError
from printhub.logger import get_logger

logger = get_logger(__name__)

service_status_bp = Blueprint('service_status', __name__, url_prefix='/api')


def _service(db) -> ServiceStatusService:
    return ServiceStatusService(db, AuditLogService(db))


@service_status_bp.route('/service-status', methods=['GET'])
def public_service_status():
    """营业状态 (public); unreadable status is reported as open"""
    db = get_session()
    try:
        status = _service(db).get_current()
    except UpstreamError as e:
        logger.error(f"Service status unavailable, reporting open: {e}")
        status = None
    finally:
        db.close()
    return jsonify(ServiceStatusDTO.from_orm_model(status).model_dump(mode="json"))


@service_status_bp.route('/admin/service-status', methods=['GET'])
def admin_service_status():
    require_admin()
    db = get_session()
    try:
        status = _service(db).get_current()
        return jsonify(ServiceStatusDTO.from_orm_model(status).model_dump(mode="json"))
    finally:
        db.close()


@service_status_bp.route('/admin/service-status', methods=['PUT'])
def update_service_status():
    """开店 / 关店 (admin)"""
    admin_id = require_admin()
    payload = json_body()

    db = get_session()
    try:
        status = _service(db).update(
            is_open=payload.get('isOpen', payload.get('is_open')),
            reason=payload.get('reason'),
            operator_id=admin_id,
        )
        db.commit()
        return jsonify({
            "message": f"Shop {'opened' if status.is_open else 'closed'} successfully",
            "service_status": ServiceStatusDTO.from_orm_model(status).model_dump(mode="json"),
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
