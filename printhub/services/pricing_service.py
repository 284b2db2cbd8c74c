from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from printhub.models.rate_table import RateTable
from printhub.repositories.rate_table_repository import RateTableRepository
from printhub.schemas.rate_table_dto import RateTableUpdateRequest
from printhub.services.audit_log_service import AuditLogService
from printhub.services.pricing_engine import PriceBreakdown, estimate, positive_int, count_pages
from printhub.db.enums import AuditEntityType, PaperSize
from printhub.errors import ValidationError, translate_storage_errors
from printhub.logger import get_logger

logger = get_logger(__name__)


def pydantic_to_validation_error(e: PydanticValidationError) -> ValidationError:
    '''First pydantic error as a ValidationError naming the offending field'''
    first = e.errors()[0]
    loc = first.get("loc") or ("body",)
    field = ".".join(str(part) for part in loc)
    return ValidationError(field, f"{field}: {first.get('msg', 'invalid value')}")


class PricingService:
    """
    Rate table versions and server-side price quotes.

    Rate tables are never edited: an admin update appends a new version and
    the newest version is the one used for quotes.
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
    ):
        self.db = db
        self.audit_log_service = audit_log_service
        self.repository = RateTableRepository(db)

    @translate_storage_errors
    def get_current_rate_table(self) -> RateTable:
        '''Current RateTable, bootstrapping the default on first use'''
        return self.repository.get_current_or_bootstrap()

    @translate_storage_errors
    def list_history(self, limit: Optional[int] = None) -> List[RateTable]:
        return self.repository.list_history(limit=limit)

    @translate_storage_errors
    def update_rate_table(
        self,
        *,
        payload: Dict[str, Any],
        operator_id: str,
    ) -> RateTable:
        """
        Validate payload and append it as the next RateTable version.

        :param payload: request body (see RateTableUpdateRequest)
        :type payload: Dict[str, Any]
        :param operator_id: admin user id
        :type operator_id: str
        """
        if not isinstance(payload, dict):
            raise ValidationError("body", "JSON object expected")
        try:
            request = RateTableUpdateRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise pydantic_to_validation_error(e) from e

        previous = self.repository.get_current()
        rate_table = self.repository.create(request.to_rate_card(), updated_by=operator_id)

        self.audit_log_service.record_create(
            entity_type=AuditEntityType.RateTable,
            entity_id=rate_table.id,
            operator_id=operator_id,
        )
        logger.info(
            f"Rate table v{rate_table.version} created by {operator_id} "
            f"(previous v{previous.version if previous else '-'}): "
            f"bw={rate_table.black_white} color={rate_table.color} "
            f"duplex={rate_table.double_sided} tax={rate_table.tax_percentage}"
        )
        return rate_table

    @translate_storage_errors
    def calculate_price(
        self,
        *,
        pages: Any,
        copies: Any,
        color: Any,
        sides: Any,
        paper_size: Any = PaperSize.A4.value,
    ) -> PriceBreakdown:
        '''
        Quote against the current rate table.
        pages may be a count (10, "10") or a selection ("1-5,8").
        '''
        page_count = positive_int(pages)
        if page_count is None and isinstance(pages, str):
            page_count = count_pages(pages)

        rate_table = self.repository.get_current_or_bootstrap()
        return estimate(page_count, copies, color, sides, paper_size, rate_table.rate_card())
