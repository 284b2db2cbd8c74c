from pydantic import BaseModel
from typing import Any, Optional
from datetime import datetime

from printhub.models.user import User
from printhub.models.service_status import ServiceStatus
from printhub.models.audit_log import AuditLog


class UserDTO(BaseModel):
    id: str
    name: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, user: User) -> "UserDTO":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            created_at=user.created_at,
            last_login=user.last_login,
        )


class ServiceStatusDTO(BaseModel):
    is_open: bool
    reason: str
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, status: Optional[ServiceStatus]) -> "ServiceStatusDTO":
        # no row yet means the shop is open
        if status is None:
            return cls(is_open=True, reason="", updated_at=None)
        return cls(is_open=status.is_open, reason=status.reason or "", updated_at=status.created_at)


class AuditLogDTO(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    changed_attribute: str
    before_value: Any = None
    after_value: Any = None
    operator_id: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, log: AuditLog) -> "AuditLogDTO":
        return cls(
            id=log.id,
            entity_type=log.entity_type.value,
            entity_id=log.entity_id,
            action=log.action.value,
            changed_attribute=log.changed_attribute,
            before_value=log.before_value,
            after_value=log.after_value,
            operator_id=log.operator_id,
            timestamp=log.timestamp,
        )
