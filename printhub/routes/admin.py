# printhub/routes/admin.py
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, send_file

from printhub.db.session import get_session
from printhub.services.order_service import OrderService
from printhub.services.print_job_service import PrintJobService
from printhub.services.order_report_service import OrderReportService, XLSX_MIMETYPE
from printhub.services.audit_log_service import AuditLogService
from printhub.schemas.order_dto import OrderDetailDTO, PrintJobDTO
from printhub.schemas.common_dto import AuditLogDTO
from printhub.routes.common import require_admin
from printhub.errors import ValidationError

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

MAX_AUDIT_LOG_LIMIT = 500


@admin_bp.route('/orders', methods=['GET'])
def list_orders():
    """全部订单, ?status= 过滤"""
    require_admin()
    db = get_session()
    try:
        orders = OrderService(db, AuditLogService(db)).list_all(request.args.get('status'))
        return jsonify([OrderDetailDTO.from_orm_model(o).model_dump(mode="json") for o in orders])
    finally:
        db.close()


@admin_bp.route('/orders/export', methods=['GET'])
def export_orders():
    """下载 Excel 订单报表"""
    require_admin()
    status = request.args.get('status')
    db = get_session()
    try:
        output = OrderReportService(db, AuditLogService(db)).export_excel(status)
    finally:
        db.close()

    filename = f"orders_{status or 'all'}_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M')}.xlsx"
    return send_file(
        output,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename,
    )


@admin_bp.route('/orders/<order_id>', methods=['GET'])
def order_detail(order_id):
    require_admin()
    db = get_session()
    try:
        order, print_jobs = OrderService(db, AuditLogService(db)).get_order_detail(order_id)
        return jsonify(OrderDetailDTO.from_orm_model(order, print_jobs).model_dump(mode="json"))
    finally:
        db.close()


@admin_bp.route('/print-jobs', methods=['GET'])
def list_print_jobs():
    require_admin()
    db = get_session()
    try:
        records = PrintJobService(db, AuditLogService(db)).list_all()
        return jsonify([PrintJobDTO.from_orm_model(r).model_dump(mode="json") for r in records])
    finally:
        db.close()


@admin_bp.route('/audit-logs', methods=['GET'])
def list_audit_logs():
    """审计日志"""
    require_admin()
    limit = request.args.get('limit', default=100, type=int)
    if limit < 1 or limit > MAX_AUDIT_LOG_LIMIT:
        raise ValidationError('limit', f'limit must be between 1 and {MAX_AUDIT_LOG_LIMIT}')

    db = get_session()
    try:
        audit_log_service = AuditLogService(db)
        try:
            logs = audit_log_service.list_recent(
                entity_type=request.args.get('entity_type') or None,
                entity_id=request.args.get('entity_id') or None,
                limit=limit,
            )
        except ValueError as e:
            raise ValidationError('entity_type', str(e)) from e
        return jsonify([AuditLogDTO.from_orm_model(log).model_dump(mode="json") for log in logs])
    finally:
        db.close()
