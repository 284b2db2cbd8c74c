from typing import Any, Dict, List
from uuid import uuid4
from decimal import Decimal, InvalidOperation
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from printhub.models.print_job import PrintJobRecord
from printhub.repositories.print_job_repository import PrintJobRepository
from printhub.services.audit_log_service import AuditLogService
from printhub.services.pricing_engine import positive_int
from printhub.db.enums import AuditEntityType, ColorMode, DuplexMode, PaperSize
from printhub.errors import NotFoundError, ValidationError, translate_storage_errors
from printhub.logger import get_logger

logger = get_logger(__name__)


class PrintJobService:
    """
    Print jobs registered from the upload form before checkout.
    They stay unlinked until an order reconciles them.
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
    ):
        self.db = db
        self.audit_log_service = audit_log_service
        self.repository = PrintJobRepository(db)

    @translate_storage_errors
    def register(
        self,
        *,
        payload: Dict[str, Any],
        operator_id: str,
    ) -> PrintJobRecord:
        """
        Store an uploaded file reference with its print options.

        :param payload: file (file store reference), originalFilename and the
            print options; missing options get the upload form defaults
        :type payload: Dict[str, Any]
        :param operator_id: uploading user id
        :type operator_id: str
        """
        file_ref = payload.get("file")
        if not isinstance(file_ref, str) or not file_ref.strip():
            raise ValidationError("file", "No file uploaded")
        file_ref = file_ref.strip()

        original_filename = payload.get("originalFilename") or payload.get("original_filename")
        if not isinstance(original_filename, str) or not original_filename.strip():
            original_filename = file_ref.rsplit("/", 1)[-1]

        try:
            estimated_price = Decimal(str(payload.get("estimatedPrice") or 0))
        except (InvalidOperation, ValueError):
            raise ValidationError("estimatedPrice", "estimatedPrice must be a number")
        if not estimated_price.is_finite() or estimated_price < 0:
            raise ValidationError("estimatedPrice", "estimatedPrice must be a number")

        record = PrintJobRecord(
            id=str(uuid4()),
            print_id=str(uuid4()),
            file_ref=file_ref,
            original_filename=original_filename.strip(),
            copies=positive_int(payload.get("copies")) or 1,
            size=str(payload.get("size") or PaperSize.A4.value),
            color=str(payload.get("color") or ColorMode.BLACK_WHITE.value),
            sides=str(payload.get("sides") or DuplexMode.SINGLE.value),
            pages=str(payload.get("pages") or "1"),
            schedule=str(payload.get("schedule") or "Not specified"),
            estimated_price=estimated_price,
            order_ref=None,
            created_at=datetime.now(timezone.utc),
        )
        self.repository.insert(record)
        self.audit_log_service.record_create(
            entity_type=AuditEntityType.PrintJob,
            entity_id=record.print_id,
            operator_id=operator_id,
        )
        logger.info(f"Print job {record.print_id} registered for {record.original_filename}")
        return record

    @translate_storage_errors
    def get(self, print_id: str) -> PrintJobRecord:
        record = self.repository.find_by_print_id(print_id)
        if record is None:
            raise NotFoundError("PrintJob", print_id)
        return record

    @translate_storage_errors
    def list_cart(self) -> List[PrintJobRecord]:
        return self.repository.list_unlinked()

    @translate_storage_errors
    def list_all(self) -> List[PrintJobRecord]:
        return self.repository.list_all()
