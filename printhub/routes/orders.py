# printhub/routes/orders.py
from flask import Blueprint, current_app, jsonify

from printhub.db.session import get_session
from printhub.db.enums import OrderStatus
from printhub.services.order_service import OrderService
from printhub.services.audit_log_service import AuditLogService
from printhub.services.service_status_service import ServiceStatusService
from printhub.services.notification_service import NotificationService
from printhub.schemas.order_dto import OrderDTO, OrderDetailDTO, PlacedOrderDTO, PrintJobDTO
from printhub.routes.common import require_login, require_admin, current_user, json_body

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


def _order_service(db) -> OrderService:
    return OrderService(db, AuditLogService(db))


@orders_bp.route('', methods=['POST'])
def place_order():
    """下单"""
    user_id = require_login()
    payload = json_body()
    claimed_total = payload.get('totalAmount', payload.get('total_amount'))

    db = get_session()
    try:
        audit_log_service = AuditLogService(db)
        # 1️⃣ shop must be open
        ServiceStatusService(db, audit_log_service).assert_open()

        # 2️⃣ assemble and persist
        order, records = OrderService(db, audit_log_service).place_order(
            user_id=user_id,
            items=payload.get('items'),
            claimed_total=claimed_total,
            verify_total=current_app.config.get('VERIFY_ORDER_TOTAL', False),
        )
        db.commit()

        body = PlacedOrderDTO(
            order=OrderDTO.from_orm_model(order),
            print_jobs=[PrintJobDTO.from_orm_model(r) for r in records],
        ).model_dump(mode="json")
        user = order.user
        recipient = (user.email, user.name) if user is not None else (None, None)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    # 3️⃣ confirmation email, after commit
    NotificationService(current_app.config).send_order_confirmation(
        recipient[0], recipient[1], body["order"]["order_id"], body["order"]["total_amount"],
    )
    return jsonify({"message": "Order created successfully", **body}), 201


@orders_bp.route('', methods=['GET'])
def list_my_orders():
    user_id = require_login()
    db = get_session()
    try:
        orders = _order_service(db).list_for_user(user_id)
        return jsonify([OrderDTO.from_orm_model(o).model_dump(mode="json") for o in orders])
    finally:
        db.close()


@orders_bp.route('/<order_id>', methods=['GET'])
def get_order(order_id):
    db = get_session()
    try:
        user = current_user(db)
        order_service = _order_service(db)
        order = order_service.get_order_for_user(order_id=order_id, user=user)
        _, print_jobs = order_service.get_order_detail(order.order_id)
        return jsonify(OrderDetailDTO.from_orm_model(order, print_jobs).model_dump(mode="json"))
    finally:
        db.close()


@orders_bp.route('/<order_id>/status', methods=['PUT'])
def update_order_status(order_id):
    """更新订单状态 (admin)"""
    admin_id = require_admin()
    payload = json_body()

    db = get_session()
    try:
        order = _order_service(db).update_status(
            order_id=order_id,
            status=payload.get('status'),
            operator_id=admin_id,
        )
        db.commit()
        body = OrderDTO.from_orm_model(order).model_dump(mode="json")
        user = order.user
        notify_ready = order.status == OrderStatus.done and user is not None
        recipient = (user.email, user.name) if user is not None else (None, None)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    if notify_ready:
        NotificationService(current_app.config).send_order_ready(recipient[0], recipient[1], body["order_id"])
    return jsonify({"message": "Order status updated successfully", "order": body})


@orders_bp.route('/<order_id>/payment', methods=['PUT'])
def update_payment(order_id):
    """记录支付凭证"""
    payload = json_body()

    db = get_session()
    try:
        user = current_user(db)
        order = _order_service(db).set_payment_reference(
            order_id=order_id,
            payment_id=payload.get('paymentId', payload.get('payment_id')),
            user=user,
        )
        db.commit()
        return jsonify({
            "message": "Payment status updated successfully",
            "order": OrderDTO.from_orm_model(order).model_dump(mode="json"),
        })
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@orders_bp.route('/status/<status>', methods=['GET'])
def list_orders_by_status(status):
    require_admin()
    db = get_session()
    try:
        orders = _order_service(db).list_by_status(status)
        return jsonify([OrderDTO.from_orm_model(o).model_dump(mode="json") for o in orders])
    finally:
        db.close()
