import io
from typing import Any, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from printhub.models.order import Order
from printhub.services.order_service import OrderService
from printhub.services.audit_log_service import AuditLogService
from printhub.errors import translate_storage_errors
from printhub.logger import get_logger

logger = get_logger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ORDER_COLUMNS = [
    "Order ID", "Customer", "Email", "Status", "Items", "Total Amount",
    "Rate Table Version", "Payment ID", "Created At",
]
ITEM_COLUMNS = [
    "Order ID", "File", "Pages", "Page Count", "Copies", "Size",
    "Color", "Sides", "Estimated Price", "Pickup Time",
]


class OrderReportService:
    """
    Excel export of orders for the admin desk.
    This service does NOT persist data.
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
    ):
        self.db = db
        self.order_service = OrderService(db, audit_log_service)

    def _order_rows(self, orders: List[Order]) -> List[list]:
        rows = []
        for order in orders:
            user = order.user
            rows.append([
                order.order_id,
                user.name if user else "",
                user.email if user else "",
                order.status.value,
                len(order.items or []),
                float(order.total_amount or 0),
                order.rate_table_version,
                order.payment_id or "",
                order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "",
            ])
        return rows

    def _item_rows(self, orders: List[Order]) -> List[list]:
        rows = []
        for order in orders:
            for item in order.items or []:
                rows.append([
                    order.order_id,
                    item.get("original_filename") or item.get("file", ""),
                    item.get("pages", ""),
                    item.get("page_count", 0),
                    item.get("copies", 0),
                    item.get("size", ""),
                    item.get("color", ""),
                    item.get("sides", ""),
                    item.get("estimated_price", 0),
                    item.get("pickup_time") or "",
                ])
        return rows

    @translate_storage_errors
    def generate_df_report(self, status: Optional[Any] = None) -> pd.DataFrame:
        '''One row per order, newest first, optionally filtered by status'''
        orders = self.order_service.list_all(status)
        return pd.DataFrame(self._order_rows(orders), columns=ORDER_COLUMNS)

    @translate_storage_errors
    def export_excel(self, status: Optional[Any] = None) -> io.BytesIO:
        """
        Build the workbook: an Orders sheet and an Items sheet.

        :param status: optional order status filter
        :return: rewound in-memory xlsx file
        """
        orders = self.order_service.list_all(status)
        orders_df = pd.DataFrame(self._order_rows(orders), columns=ORDER_COLUMNS)
        items_df = pd.DataFrame(self._item_rows(orders), columns=ITEM_COLUMNS)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            orders_df.to_excel(writer, index=False, sheet_name="Orders")
            items_df.to_excel(writer, index=False, sheet_name="Items")
        output.seek(0)

        logger.info(f"Exported {len(orders)} order(s) to Excel (status={status or 'all'})")
        return output
