from typing import Any, List, Optional, Union
from uuid import uuid4
from decimal import Decimal
from datetime import datetime, date, timezone
import enum

from sqlalchemy.orm import Session

from printhub.models.audit_log import AuditLog
from printhub.db.enums import AuditEntityType, AuditAction

SYSTEM_OPERATOR = "SYSTEM"


class AuditLogService:
    """
    Centralized service for recording all auditable actions.
    This service is the ONLY place where AuditLog records are created.
    """

    def __init__(self, db: Session):
        self.db = db

    def serialize_audit_value(self, value) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (int, float, str, bool)):
            return value
        if isinstance(value, dict):
            return {str(k): self.serialize_audit_value(v) for k, v in value.items()}
        return str(value)

    def _normalize_entity_type(self, entity_type: Union[str, AuditEntityType]) -> AuditEntityType:
        '''Accept the enum, its value ("rate_table") or its name ("RateTable")'''
        if isinstance(entity_type, AuditEntityType):
            return entity_type

        entity_type_str = str(entity_type).strip()
        for enum_member in AuditEntityType:
            if enum_member.value == entity_type_str.lower():
                return enum_member
            if enum_member.name.lower() == entity_type_str.lower():
                return enum_member

        raise ValueError(f"Unknown entity_type: {entity_type_str}. Valid values: {[e.value for e in AuditEntityType]}")

    def _add(
        self,
        *,
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        action: AuditAction,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> AuditLog:
        log = AuditLog(
            id=str(uuid4()),
            entity_type=self._normalize_entity_type(entity_type),
            entity_id=entity_id,
            action=action,
            changed_attribute=changed_attribute,
            before_value=self.serialize_audit_value(before_value),
            after_value=self.serialize_audit_value(after_value),
            operator_id=operator_id,
            timestamp=datetime.now(timezone.utc),
        )
        self.db.add(log)
        self.db.flush()
        return log

    def record_create(
        self,
        *,
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        operator_id: Optional[str],
    ) -> AuditLog:
        '''
        Record the creation of a User, RateTable, Order, PrintJob or ServiceStatus.

        :param entity_type: enum member or its string form
        :type entity_type: Union[str, AuditEntityType]
        :param entity_id: id of the created entity
        :type entity_id: str
        :param operator_id: acting user id; None is recorded as SYSTEM
        :type operator_id: Optional[str]
        '''
        return self._add(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.create,
            changed_attribute="__all__",
            before_value=None,
            after_value=None,
            operator_id=operator_id or SYSTEM_OPERATOR,
        )

    def record_update(
        self,
        *,
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> AuditLog:
        '''
        Record a user-driven change of one attribute.

        :param changed_attribute: name of the changed attribute
        :type changed_attribute: str
        :param before_value: value before the change
        :param after_value: value after the change
        :param operator_id: acting user id
        :type operator_id: str
        '''
        return self._add(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.update,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id=operator_id,
        )

    def record_system_update(
        self,
        *,
        entity_type: Union[str, AuditEntityType],
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
    ) -> AuditLog:
        '''
        Record a change made by the system itself, e.g. checkout
        relinking an existing print job to a new order.
        '''
        return self._add(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.system,
            changed_attribute=changed_attribute,
            before_value=before_value,
            after_value=after_value,
            operator_id=SYSTEM_OPERATOR,
        )

    def list_recent(
        self,
        *,
        entity_type: Optional[Union[str, AuditEntityType]] = None,
        entity_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        query = self.db.query(AuditLog)
        if entity_type is not None:
            query = query.filter(AuditLog.entity_type == self._normalize_entity_type(entity_type))
        if entity_id:
            query = query.filter(AuditLog.entity_id == entity_id)
        return query.order_by(AuditLog.timestamp.desc()).limit(limit).all()
