# Import every table so Base.metadata and relationship() names resolve.
from printhub.models.user import User
from printhub.models.rate_table import RateTable
from printhub.models.order import Order
from printhub.models.print_job import PrintJobRecord
from printhub.models.service_status import ServiceStatus
from printhub.models.audit_log import AuditLog

__all__ = [
    "User",
    "RateTable",
    "Order",
    "PrintJobRecord",
    "ServiceStatus",
    "AuditLog",
]
