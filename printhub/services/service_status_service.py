from typing import Any, Optional
from uuid import uuid4
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from printhub.models.service_status import ServiceStatus
from printhub.services.audit_log_service import AuditLogService
from printhub.db.enums import AuditEntityType
from printhub.errors import ServiceClosedError, ValidationError, translate_storage_errors
from printhub.logger import get_logger

logger = get_logger(__name__)

MAX_REASON_LENGTH = 500


class ServiceStatusService:
    """
    Open / closed switch of the print shop.
    Every change appends a ServiceStatus row; the newest row is current and
    no row at all means open.
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
    ):
        self.db = db
        self.audit_log_service = audit_log_service

    @translate_storage_errors
    def get_current(self) -> Optional[ServiceStatus]:
        return (
            self.db.query(ServiceStatus)
            .order_by(ServiceStatus.created_at.desc())
            .first()
        )

    @translate_storage_errors
    def update(
        self,
        *,
        is_open: Any,
        reason: Any,
        operator_id: str,
    ) -> ServiceStatus:
        """
        Open or close the shop.

        :param is_open: new state, must be a real bool
        :param reason: required when closing, at most 500 characters
        :param operator_id: admin user id
        :type operator_id: str
        """
        if not isinstance(is_open, bool):
            raise ValidationError("isOpen", "isOpen must be a boolean value")
        if reason is not None and not isinstance(reason, str):
            raise ValidationError("reason", "reason must be a string")

        reason = (reason or "").strip()
        if not is_open and not reason:
            raise ValidationError("reason", "Reason is required when closing the shop")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError("reason", f"Reason must be at most {MAX_REASON_LENGTH} characters")

        previous = self.get_current()
        status = ServiceStatus(
            id=str(uuid4()),
            is_open=is_open,
            reason=reason,
            updated_by=operator_id,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(status)
        self.db.flush()

        self.audit_log_service.record_update(
            entity_type=AuditEntityType.ServiceStatus,
            entity_id=status.id,
            changed_attribute="is_open",
            before_value=previous.is_open if previous else True,
            after_value=is_open,
            operator_id=operator_id,
        )
        logger.info(f"Shop {'opened' if is_open else 'closed'} by {operator_id}. Reason: {reason or 'N/A'}")
        return status

    def assert_open(self) -> None:
        '''
        Raise ServiceClosedError when the shop is closed.
        When the status cannot be read, the check lets the request through.
        '''
        try:
            current = (
                self.db.query(ServiceStatus)
                .order_by(ServiceStatus.created_at.desc())
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Service status check failed, allowing request: {e}")
            self.db.rollback()
            return

        if current is not None and not current.is_open:
            raise ServiceClosedError(current.reason, current.created_at)
