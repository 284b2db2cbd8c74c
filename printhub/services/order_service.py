from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from printhub.models.order import Order
from printhub.models.print_job import PrintJobRecord
from printhub.models.user import User
from printhub.repositories.order_repository import OrderRepository
from printhub.repositories.print_job_repository import PrintJobRepository, MATCH_EXACT
from printhub.repositories.rate_table_repository import RateTableRepository
from printhub.services.audit_log_service import AuditLogService
from printhub.services.pricing_engine import estimate, count_pages, TWO_PLACES, ZERO
from printhub.db.enums import (
    AuditEntityType,
    ColorMode,
    DuplexMode,
    OrderStatus,
    PaperSize,
)
from printhub.errors import (
    InvalidStatusError,
    NotFoundError,
    OrderPlacementError,
    PermissionDeniedError,
    ValidationError,
    translate_storage_errors,
)
from printhub.logger import get_logger

logger = get_logger(__name__)

# largest client/server difference still treated as the same price
TOTAL_TOLERANCE = Decimal("0.01")
# largest value Order.total_amount (Numeric(12, 2)) can hold
MAX_TOTAL_AMOUNT = Decimal("9999999999.99")
ORDER_ID_PREFIX = "ORD"
DEFAULT_SCHEDULE = "Not specified"


def _first(item: Dict[str, Any], *keys: str) -> Any:
    '''First non-empty value among keys; camelCase and snake_case both appear'''
    for key in keys:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def _coerce_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _coerce_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    return number if number.is_finite() else ZERO


def normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill the defaults of one submitted print job spec. Never fails: unusable
    values are replaced, numeric fields fall back to 0.

    :param item: spec as posted by the client
    :type item: Dict[str, Any]
    :return: normalized spec as stored in Order.items
    """
    file_ref = str(_first(item, "file", "file_ref", "fileUrl") or "")
    pages = _first(item, "pages")
    pages = "" if pages is None else str(pages)

    # 1️⃣ page count: the selection first, then what the client measured
    page_count = count_pages(pages)
    if page_count == 0:
        page_count = _coerce_int(_first(item, "pageCount", "page_count"))

    pickup_time = _first(item, "pickupTime", "pickup_time")

    return {
        "file": file_ref,
        "original_filename": str(_first(item, "originalFilename", "original_filename") or file_ref),
        "copies": _coerce_int(item.get("copies")),
        "size": str(_first(item, "size", "paperSize", "paper_size") or PaperSize.A4.value),
        "color": str(_first(item, "color") or ColorMode.BLACK_WHITE.value),
        "sides": str(_first(item, "sides") or DuplexMode.SINGLE.value),
        "pages": pages,
        "page_count": page_count,
        "estimated_price": float(_coerce_decimal(_first(item, "price", "estimatedPrice", "estimated_price"))),
        "pickup_time": str(pickup_time) if pickup_time is not None else None,
        "urgency": str(_first(item, "urgency") or "Normal"),
        "printer": str(_first(item, "printer") or "Library"),
    }


class OrderService:
    """
    Order assembler.

    Turns a submitted cart into an Order plus linked PrintJobRecords, and
    owns the later status / payment updates. All writes only flush; the
    caller commits once so a failed placement leaves nothing behind.
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
    ):
        self.db = db
        self.audit_log_service = audit_log_service
        self.orders = OrderRepository(db)
        self.print_jobs = PrintJobRepository(db)
        self.rate_tables = RateTableRepository(db)

    # ======================================================
    # 🛒 Placement
    # ======================================================

    @translate_storage_errors
    def place_order(
        self,
        *,
        user_id: str,
        items: Any,
        claimed_total: Any,
        verify_total: bool = False,
    ) -> Tuple[Order, List[PrintJobRecord]]:
        """
        Place an order for user_id.

        :param user_id: owning user (trusted, from the session)
        :type user_id: str
        :param items: list of print job specs
        :param claimed_total: total computed by the client
        :param verify_total: reject the order when claimed_total differs from
            the server quote by more than one cent
        :type verify_total: bool
        :return: (order, linked or created print job records)
        """
        # 1️⃣ validate
        if not isinstance(items, list) or not items:
            raise ValidationError("items", "Items array is required and must not be empty")
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValidationError(f"items[{index}]", "Each item must be an object")

        if isinstance(claimed_total, bool) or not isinstance(claimed_total, (int, float, Decimal)):
            raise ValidationError("totalAmount", "Total amount must be a valid number")
        total_amount = Decimal(str(claimed_total))
        if not total_amount.is_finite() or total_amount < 0:
            raise ValidationError("totalAmount", "Total amount must be a valid number")
        if total_amount > MAX_TOTAL_AMOUNT:
            raise ValidationError("totalAmount", f"Total amount must not exceed {MAX_TOTAL_AMOUNT}")
        total_amount = total_amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

        # 2️⃣ normalize
        normalized = [normalize_item(item) for item in items]

        # 3️⃣ server quote against the current rates
        rate_table = self.rate_tables.get_current_or_bootstrap()
        rate_card = rate_table.rate_card()
        quoted_total = ZERO
        for spec in normalized:
            quote = estimate(
                spec["page_count"], spec["copies"], spec["color"], spec["sides"], spec["size"], rate_card,
            )
            quoted_total += quote.total

        if abs(quoted_total - total_amount) > TOTAL_TOLERANCE:
            logger.warning(
                f"Order total mismatch for user {user_id}: "
                f"claimed={total_amount} quoted={quoted_total} (rate table v{rate_table.version})"
            )
            if verify_total:
                raise ValidationError(
                    "totalAmount",
                    f"Total amount {total_amount} does not match the current price {quoted_total}",
                )

        # 4️⃣ persist the order
        order = Order(
            id=str(uuid4()),
            order_id=self._generate_order_id(),
            user_id=user_id,
            items=normalized,
            total_amount=total_amount,
            rate_table_version=rate_table.version,
            status=OrderStatus.queued,
            created_at=datetime.now(timezone.utc),
        )
        self.orders.insert(order)
        self.audit_log_service.record_create(
            entity_type=AuditEntityType.Order,
            entity_id=order.order_id,
            operator_id=user_id,
        )

        # 5️⃣ reconcile print jobs
        try:
            records = [self._reconcile(order, spec) for spec in normalized]
        except SQLAlchemyError as e:
            logger.exception(f"Reconciliation failed for order {order.order_id}: {e}")
            raise OrderPlacementError(order.order_id) from e

        logger.info(
            f"Order {order.order_id} placed by {user_id}: "
            f"{len(normalized)} item(s), total={total_amount}, quoted={quoted_total}"
        )
        return order, records

    def _generate_order_id(self) -> str:
        '''Random external id, e.g. ORD3F9A1C07B2D4'''
        while True:
            candidate = f"{ORDER_ID_PREFIX}{uuid4().hex[:12].upper()}"
            if not self.orders.external_id_exists(candidate):
                return candidate

    def _reconcile(self, order: Order, spec: Dict[str, Any]) -> PrintJobRecord:
        '''Reuse the matching record (exact file, then fuzzy name) or create one'''
        record, strategy = self.print_jobs.find_by_file_ref_or_fuzzy_name(
            spec["file"], spec["original_filename"],
        )

        if record is None:
            record = PrintJobRecord(
                id=str(uuid4()),
                print_id=str(uuid4()),
                file_ref=spec["file"],
                original_filename=spec["original_filename"],
                copies=spec["copies"],
                size=spec["size"],
                color=spec["color"],
                sides=spec["sides"],
                pages=spec["pages"],
                schedule=spec["pickup_time"] or DEFAULT_SCHEDULE,
                estimated_price=Decimal(str(spec["estimated_price"])),
                order=order,
                order_ref=order.id,
                created_at=datetime.now(timezone.utc),
            )
            self.print_jobs.insert(record)
            self.audit_log_service.record_create(
                entity_type=AuditEntityType.PrintJob,
                entity_id=record.print_id,
                operator_id=order.user_id,
            )
            logger.info(f"Order {order.order_id}: created print job {record.print_id} for {spec['original_filename']}")
            return record

        previous_order_ref = record.order_ref
        self.print_jobs.relink_to_order(record, order)
        self.audit_log_service.record_system_update(
            entity_type=AuditEntityType.PrintJob,
            entity_id=record.print_id,
            changed_attribute="order_ref",
            before_value=previous_order_ref,
            after_value=order.id,
        )
        logger.info(
            f"Order {order.order_id}: reused print job {record.print_id} "
            f"({'exact file' if strategy == MATCH_EXACT else 'fuzzy name'} match"
            f"{', moved from ' + previous_order_ref if previous_order_ref else ''})"
        )
        return record

    # ======================================================
    # 📌 Status & payment
    # ======================================================

    @translate_storage_errors
    def update_status(
        self,
        *,
        order_id: str,
        status: Any,
        operator_id: str,
    ) -> Order:
        '''
        Set the status of an order. Any allowed status may follow any other.

        :raises InvalidStatusError: status not in queued / done / cancelled
        :raises NotFoundError: no order with this external id
        '''
        new_status = OrderStatus.parse(status)
        if new_status is None:
            raise InvalidStatusError(status, [s.value for s in OrderStatus])

        order = self._require_order(order_id)
        previous = order.status
        self.orders.update_status(order, new_status)

        self.audit_log_service.record_update(
            entity_type=AuditEntityType.Order,
            entity_id=order.order_id,
            changed_attribute="status",
            before_value=previous,
            after_value=new_status,
            operator_id=operator_id,
        )
        logger.info(f"Order {order.order_id} status {previous.value} -> {new_status.value} by {operator_id}")
        return order

    @translate_storage_errors
    def set_payment_reference(
        self,
        *,
        order_id: str,
        payment_id: Any,
        user: User,
    ) -> Order:
        '''
        Store the payment confirmation token. The status is left as is.
        Only the owner or an admin may do this.
        '''
        if not isinstance(payment_id, str) or not payment_id.strip():
            raise ValidationError("paymentId", "paymentId is required")

        order = self._require_order(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Access denied")

        previous = order.payment_id
        self.orders.set_payment_reference(order, payment_id.strip())
        self.audit_log_service.record_update(
            entity_type=AuditEntityType.Order,
            entity_id=order.order_id,
            changed_attribute="payment_id",
            before_value=previous,
            after_value=order.payment_id,
            operator_id=user.id,
        )
        logger.info(f"Payment reference recorded for order {order.order_id}")
        return order

    # ======================================================
    # 🔍 Queries
    # ======================================================

    def _require_order(self, order_id: str) -> Order:
        order = self.orders.find_by_external_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    @translate_storage_errors
    def get_order(self, order_id: str) -> Order:
        return self._require_order(order_id)

    @translate_storage_errors
    def get_order_for_user(self, *, order_id: str, user: User) -> Order:
        '''Owner or admin only; others get NotFound so ids are not probed'''
        order = self._require_order(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise NotFoundError("Order", order_id)
        return order

    @translate_storage_errors
    def get_order_detail(self, order_id: str) -> Tuple[Order, List[PrintJobRecord]]:
        order = self._require_order(order_id)
        return order, self.print_jobs.list_by_order(order)

    @translate_storage_errors
    def list_for_user(self, user_id: str) -> List[Order]:
        return self.orders.find_by_user(user_id)

    @translate_storage_errors
    def list_by_status(self, status: Any) -> List[Order]:
        parsed = OrderStatus.parse(status)
        if parsed is None:
            raise InvalidStatusError(status, [s.value for s in OrderStatus])
        return self.orders.find_by_status(parsed)

    @translate_storage_errors
    def list_all(self, status: Optional[Any] = None) -> List[Order]:
        if status:
            return self.list_by_status(status)
        return self.orders.list_all()
