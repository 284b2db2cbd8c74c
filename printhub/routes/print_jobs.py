# printhub/routes/print_jobs.py
from flask import Blueprint, jsonify

from printhub.db.session import get_session
from printhub.services.print_job_service import PrintJobService
from printhub.services.audit_log_service import AuditLogService
from printhub.schemas.order_dto import PrintJobDTO
from printhub.routes.common import require_login, json_body

print_jobs_bp = Blueprint('print_jobs', __name__, url_prefix='/api/print-jobs')


@print_jobs_bp.route('', methods=['POST'])
def register_print_job():
    """登记上传文件及打印参数"""
    user_id = require_login()
    payload = json_body()

    db = get_session()
    try:
        record = PrintJobService(db, AuditLogService(db)).register(payload=payload, operator_id=user_id)
        db.commit()
        return jsonify({
            "message": "Print job created successfully",
            "print_job": PrintJobDTO.from_orm_model(record).model_dump(mode="json"),
        }), 201
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@print_jobs_bp.route('', methods=['GET'])
def list_cart():
    """未下单的打印任务"""
    require_login()
    db = get_session()
    try:
        records = PrintJobService(db, AuditLogService(db)).list_cart()
        return jsonify([PrintJobDTO.from_orm_model(r).model_dump(mode="json") for r in records])
    finally:
        db.close()


@print_jobs_bp.route('/<print_id>', methods=['GET'])
def get_print_job(print_id):
    require_login()
    db = get_session()
    try:
        record = PrintJobService(db, AuditLogService(db)).get(print_id)
        return jsonify(PrintJobDTO.from_orm_model(record).model_dump(mode="json"))
    finally:
        db.close()
