# printhub/routes/pricing.py
from flask import Blueprint, jsonify, request

from printhub.db.session import get_session
from printhub.db.enums import PaperSize
from printhub.services.pricing_service import PricingService
from printhub.services.audit_log_service import AuditLogService
from printhub.schemas.rate_table_dto import RateTablePublicDTO, RateTableAdminDTO
from printhub.routes.common import require_admin, json_body

pricing_bp = Blueprint('pricing', __name__, url_prefix='/api/pricing')


def _pricing_service(db) -> PricingService:
    return PricingService(db, AuditLogService(db))


@pricing_bp.route('', methods=['GET'])
def get_pricing():
    """当前价格 (public)"""
    db = get_session()
    try:
        rate_table = _pricing_service(db).get_current_rate_table()
        db.commit()  # bootstrap default on first access
        return jsonify(RateTablePublicDTO.from_orm_model(rate_table).model_dump(mode="json"))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@pricing_bp.route('/admin', methods=['GET'])
def get_pricing_admin():
    require_admin()
    db = get_session()
    try:
        rate_table = _pricing_service(db).get_current_rate_table()
        db.commit()
        return jsonify(RateTableAdminDTO.from_orm_model(rate_table).model_dump(mode="json"))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@pricing_bp.route('/history', methods=['GET'])
def get_pricing_history():
    require_admin()
    limit = request.args.get('limit', type=int)
    db = get_session()
    try:
        history = _pricing_service(db).list_history(limit=limit)
        return jsonify([RateTableAdminDTO.from_orm_model(r).model_dump(mode="json") for r in history])
    finally:
        db.close()


@pricing_bp.route('', methods=['PUT'])
def update_pricing():
    """新建价格版本 (admin)"""
    admin_id = require_admin()
    payload = json_body()

    db = get_session()
    try:
        rate_table = _pricing_service(db).update_rate_table(payload=payload, operator_id=admin_id)
        db.commit()
        return jsonify({
            "message": "Pricing updated successfully",
            "pricing": RateTableAdminDTO.from_orm_model(rate_table).model_dump(mode="json"),
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@pricing_bp.route('/calculate', methods=['POST'])
def calculate_price():
    """报价 (public)"""
    payload = json_body()

    db = get_session()
    try:
        breakdown = _pricing_service(db).calculate_price(
            pages=payload.get('pages'),
            copies=payload.get('copies'),
            color=payload.get('color'),
            sides=payload.get('sides'),
            paper_size=payload.get('paperSize') or payload.get('size') or PaperSize.A4.value,
        )
        db.commit()
        return jsonify(breakdown.to_dict())
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
