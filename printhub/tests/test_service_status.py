import pytest
from sqlalchemy.exc import OperationalError

from printhub.errors import ServiceClosedError, ValidationError
from printhub.schemas.common_dto import ServiceStatusDTO
from printhub.services.service_status_service import ServiceStatusService


@pytest.fixture
def status_service(db, audit_log_service):
    return ServiceStatusService(db, audit_log_service)


def test_no_record_means_open(status_service):
    assert status_service.get_current() is None
    status_service.assert_open()

    dto = ServiceStatusDTO.from_orm_model(None)
    assert dto.is_open is True
    assert dto.reason == ""


def test_closing_blocks_checkout(status_service, admin):
    status_service.update(is_open=False, reason="Printer maintenance", operator_id=admin.id)

    with pytest.raises(ServiceClosedError) as exc:
        status_service.assert_open()

    payload = exc.value.to_payload()
    assert exc.value.status_code == 503
    assert payload["error"] == "SHOP_CLOSED"
    assert payload["reason"] == "Printer maintenance"
    assert payload["is_open"] is False


def test_reopening_allows_checkout(status_service, admin):
    status_service.update(is_open=False, reason="Lunch", operator_id=admin.id)
    status_service.update(is_open=True, reason=None, operator_id=admin.id)

    status_service.assert_open()
    assert status_service.get_current().is_open is True


@pytest.mark.parametrize("is_open, reason, field", [
    (False, "", "reason"),
    (False, "   ", "reason"),
    (False, "x" * 501, "reason"),
    ("false", "Lunch", "isOpen"),
    (None, "Lunch", "isOpen"),
    (True, 42, "reason"),
])
def test_invalid_updates(status_service, admin, is_open, reason, field):
    with pytest.raises(ValidationError) as exc:
        status_service.update(is_open=is_open, reason=reason, operator_id=admin.id)
    assert exc.value.field == field


def test_update_is_audited(status_service, audit_log_service, admin):
    status = status_service.update(is_open=False, reason="Holiday", operator_id=admin.id)

    log = audit_log_service.list_recent(entity_id=status.id)[0]
    assert log.before_value is True
    assert log.after_value is False


def test_check_fails_open_when_status_unreadable(db, status_service, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "query", broken_query)

    status_service.assert_open()
