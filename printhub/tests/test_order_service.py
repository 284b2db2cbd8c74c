from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from printhub.db.enums import AuditEntityType, OrderStatus
from printhub.errors import (
    InvalidStatusError,
    NotFoundError,
    OrderPlacementError,
    PermissionDeniedError,
    ValidationError,
)
from printhub.models.order import Order
from printhub.models.print_job import PrintJobRecord
from printhub.services.order_service import OrderService, normalize_item
from printhub.services.print_job_service import PrintJobService


@pytest.fixture
def order_service(db, audit_log_service):
    return OrderService(db, audit_log_service)


@pytest.fixture
def print_job_service(db, audit_log_service):
    return PrintJobService(db, audit_log_service)


def _item(file="https://files.example/abc.pdf", name="abc.pdf", **overrides):
    item = {
        "file": file,
        "originalFilename": name,
        "pages": "10",
        "copies": 2,
        "color": "Black & White",
        "sides": "Single-sided",
        "size": "A4",
        "price": 23.6,
    }
    item.update(overrides)
    return item


# ======================================================
# 🛒 Placement
# ======================================================

def test_place_order_persists_queued_order(db, order_service, student):
    order, records = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=23.6)

    assert order.status == OrderStatus.queued
    assert order.order_id.startswith("ORD")
    assert len(order.order_id) == 15
    assert order.order_id != order.id
    assert order.total_amount == Decimal("23.60")
    assert order.rate_table_version == 1
    assert order.items[0]["page_count"] == 10
    assert order.items[0]["estimated_price"] == 23.6

    assert len(records) == 1
    assert records[0].order_ref == order.id
    assert records[0].file_ref == "https://files.example/abc.pdf"
    assert db.query(Order).count() == 1


def test_order_ids_are_unique(order_service, student):
    ids = {
        order_service.place_order(user_id=student.id, items=[_item(file=f"f{i}", name=f"n{i}")], claimed_total=1)[0].order_id
        for i in range(5)
    }
    assert len(ids) == 5


@pytest.mark.parametrize("items", [None, [], "abc", {"file": "x"}])
def test_items_must_be_a_non_empty_list(order_service, student, items):
    with pytest.raises(ValidationError) as exc:
        order_service.place_order(user_id=student.id, items=items, claimed_total=10)
    assert exc.value.field == "items"


def test_item_without_file_gets_its_own_record(order_service, student):
    order, records = order_service.place_order(user_id=student.id, items=[{"pages": "1"}], claimed_total=10)

    assert order.items[0]["file"] == ""
    assert records[0].file_ref == ""
    assert records[0].order_ref == order.id


def test_total_beyond_storable_range_is_rejected(order_service, student):
    with pytest.raises(ValidationError) as exc:
        order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1e30)
    assert exc.value.field == "totalAmount"


@pytest.mark.parametrize("total, stored", [
    (10.125, Decimal("10.13")),
    (Decimal("0.005"), Decimal("0.01")),
    (9999999999.99, Decimal("9999999999.99")),
])
def test_total_is_rounded_half_up(order_service, student, total, stored):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=total)
    assert order.total_amount == stored


@pytest.mark.parametrize("total", [None, "23.6", True, float("nan"), -5, [1]])
def test_total_must_be_numeric(order_service, student, total):
    with pytest.raises(ValidationError) as exc:
        order_service.place_order(user_id=student.id, items=[_item()], claimed_total=total)
    assert exc.value.field == "totalAmount"


def test_normalize_item_fills_defaults():
    spec = normalize_item({"file": "https://files.example/x.pdf"})

    assert spec["size"] == "A4"
    assert spec["color"] == "Black & White"
    assert spec["sides"] == "Single-sided"
    assert spec["pages"] == ""
    assert spec["page_count"] == 0
    assert spec["copies"] == 0
    assert spec["estimated_price"] == 0.0
    assert spec["original_filename"] == "https://files.example/x.pdf"
    assert spec["urgency"] == "Normal"
    assert spec["printer"] == "Library"
    assert spec["pickup_time"] is None


def test_normalize_item_coerces_values():
    spec = normalize_item({
        "file": "f", "pages": 5, "copies": "3", "estimatedPrice": "abc", "pickupTime": "2026-01-05T10:00",
    })

    assert spec["pages"] == "5"
    assert spec["page_count"] == 5
    assert spec["copies"] == 3
    assert spec["estimated_price"] == 0.0
    assert spec["pickup_time"] == "2026-01-05T10:00"


def test_normalize_item_falls_back_to_client_page_count():
    assert normalize_item({"file": "f", "pages": "all", "pageCount": 12})["page_count"] == 12


# ======================================================
# 💰 Total check
# ======================================================

def test_client_total_is_trusted_by_default(order_service, student):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=5)
    assert order.total_amount == Decimal("5.00")


def test_verified_total_rejects_mismatch(db, order_service, student):
    with pytest.raises(ValidationError) as exc:
        order_service.place_order(user_id=student.id, items=[_item()], claimed_total=5, verify_total=True)

    assert exc.value.field == "totalAmount"
    assert db.query(Order).count() == 0


def test_verified_total_accepts_matching_quote(order_service, student):
    order, _ = order_service.place_order(
        user_id=student.id,
        items=[_item(), _item(file="other", name="other.pdf", pages="1-3", copies=1, color="Color")],
        claimed_total=Decimal("30.68"),
        verify_total=True,
    )
    # 23.60 + 3 * 2.00 * 1.18
    assert order.total_amount == Decimal("30.68")


# ======================================================
# 🔗 Reconciliation
# ======================================================

def test_unlinked_record_is_reused_by_file_reference(db, order_service, print_job_service, student):
    existing = print_job_service.register(
        payload={"file": "https://files.example/abc.pdf", "originalFilename": "abc.pdf"},
        operator_id=student.id,
    )

    order, records = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=23.6)

    assert records[0].print_id == existing.print_id
    assert existing.order_ref == order.id
    assert db.query(PrintJobRecord).count() == 1


def test_record_is_reused_by_fuzzy_filename(db, order_service, print_job_service, student):
    existing = print_job_service.register(
        payload={"file": "https://files.example/1", "originalFilename": "Thesis_Final.pdf"},
        operator_id=student.id,
    )

    _, records = order_service.place_order(
        user_id=student.id, items=[_item(file="https://files.example/2", name="thesis")], claimed_total=1,
    )

    assert records[0].print_id == existing.print_id
    assert db.query(PrintJobRecord).count() == 1


def test_exact_match_wins_over_fuzzy(order_service, print_job_service, student):
    exact = print_job_service.register(
        payload={"file": "https://files.example/y", "originalFilename": "notes (1).pdf"},
        operator_id=student.id,
    )
    print_job_service.register(
        payload={"file": "https://files.example/z", "originalFilename": "notes.pdf"},
        operator_id=student.id,
    )

    _, records = order_service.place_order(
        user_id=student.id, items=[_item(file="https://files.example/y", name="notes.pdf")], claimed_total=1,
    )

    assert records[0].print_id == exact.print_id


def test_unmatched_item_creates_linked_record(order_service, student):
    order, records = order_service.place_order(
        user_id=student.id,
        items=[_item(file="https://files.example/new", name="fresh.pdf", pickupTime="Tomorrow 10am")],
        claimed_total=1,
    )

    record = records[0]
    assert record.order_ref == order.id
    assert record.original_filename == "fresh.pdf"
    assert record.schedule == "Tomorrow 10am"
    assert record.estimated_price == Decimal("23.6")
    assert record.pages == "10"


def test_same_file_in_second_order_moves_the_link(db, order_service, student):
    first, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)
    second, records = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    assert db.query(PrintJobRecord).count() == 1
    assert records[0].order_ref == second.id
    assert records[0].order_ref != first.id


def test_fuzzy_match_moves_link_from_earlier_order(db, order_service, student):
    first, _ = order_service.place_order(
        user_id=student.id, items=[_item(file="https://files.example/1", name="Thesis_Final.pdf")], claimed_total=1,
    )
    second, records = order_service.place_order(
        user_id=student.id, items=[_item(file="https://files.example/2", name="thesis")], claimed_total=1,
    )

    assert db.query(PrintJobRecord).count() == 1
    assert records[0].original_filename == "Thesis_Final.pdf"
    assert records[0].order_ref == second.id
    assert first.id != second.id


def test_reconciliation_is_audited(order_service, audit_log_service, student):
    order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)
    order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    logs = audit_log_service.list_recent(entity_type=AuditEntityType.PrintJob)
    assert sorted(log.action.value for log in logs) == ["create", "system"]


def test_reconciliation_failure_reports_order_id(order_service, student, monkeypatch):
    def broken_lookup(file_ref, filename):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(order_service.print_jobs, "find_by_file_ref_or_fuzzy_name", broken_lookup)

    with pytest.raises(OrderPlacementError) as exc:
        order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    assert exc.value.order_id.startswith("ORD")
    payload = exc.value.to_payload()
    assert payload["order_id"] == exc.value.order_id
    assert "disk" not in payload["message"]


# ======================================================
# 📌 Status & payment
# ======================================================

def test_update_status_unknown_order(order_service, admin):
    with pytest.raises(NotFoundError):
        order_service.update_status(order_id="ORD123", status="done", operator_id=admin.id)


def test_update_status_rejects_unknown_status_before_lookup(order_service, admin):
    with pytest.raises(InvalidStatusError):
        order_service.update_status(order_id="ORD123", status="shipped", operator_id=admin.id)


def test_any_status_may_follow_any_other(order_service, student, admin):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    assert order_service.update_status(order_id=order.order_id, status="done", operator_id=admin.id).status == OrderStatus.done
    assert order_service.update_status(order_id=order.order_id, status="cancelled", operator_id=admin.id).status == OrderStatus.cancelled
    assert order_service.update_status(order_id=order.order_id, status="queue", operator_id=admin.id).status == OrderStatus.queued


def test_status_change_is_audited(order_service, audit_log_service, student, admin):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)
    order_service.update_status(order_id=order.order_id, status="done", operator_id=admin.id)

    logs = audit_log_service.list_recent(entity_type=AuditEntityType.Order, entity_id=order.order_id)
    update = next(log for log in logs if log.changed_attribute == "status")
    assert update.before_value == "queued"
    assert update.after_value == "done"
    assert update.operator_id == admin.id


def test_payment_reference_keeps_status(order_service, student):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    updated = order_service.set_payment_reference(order_id=order.order_id, payment_id="pay_123", user=student)

    assert updated.payment_id == "pay_123"
    assert updated.status == OrderStatus.queued


def test_payment_reference_owner_or_admin_only(order_service, student, other_student, admin):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    with pytest.raises(PermissionDeniedError):
        order_service.set_payment_reference(order_id=order.order_id, payment_id="pay_x", user=other_student)

    assert order_service.set_payment_reference(order_id=order.order_id, payment_id="pay_y", user=admin).payment_id == "pay_y"


def test_payment_reference_required(order_service, student):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)
    with pytest.raises(ValidationError):
        order_service.set_payment_reference(order_id=order.order_id, payment_id="  ", user=student)


# ======================================================
# 🔍 Queries
# ======================================================

def test_list_for_user_is_newest_first(order_service, student, other_student):
    first, _ = order_service.place_order(user_id=student.id, items=[_item(file="a", name="a")], claimed_total=1)
    second, _ = order_service.place_order(user_id=student.id, items=[_item(file="b", name="b")], claimed_total=1)
    order_service.place_order(user_id=other_student.id, items=[_item(file="c", name="c")], claimed_total=1)

    assert [o.order_id for o in order_service.list_for_user(student.id)] == [second.order_id, first.order_id]


def test_list_by_status(order_service, student, admin):
    order, _ = order_service.place_order(user_id=student.id, items=[_item(file="a", name="a")], claimed_total=1)
    order_service.place_order(user_id=student.id, items=[_item(file="b", name="b")], claimed_total=1)
    order_service.update_status(order_id=order.order_id, status="done", operator_id=admin.id)

    assert [o.order_id for o in order_service.list_by_status("done")] == [order.order_id]
    assert len(order_service.list_by_status("queued")) == 1
    with pytest.raises(InvalidStatusError):
        order_service.list_by_status("printing")


def test_order_hidden_from_other_students(order_service, student, other_student, admin):
    order, _ = order_service.place_order(user_id=student.id, items=[_item()], claimed_total=1)

    with pytest.raises(NotFoundError):
        order_service.get_order_for_user(order_id=order.order_id, user=other_student)
    assert order_service.get_order_for_user(order_id=order.order_id, user=admin).id == order.id


def test_order_detail_lists_linked_jobs(order_service, student):
    order, _ = order_service.place_order(
        user_id=student.id, items=[_item(file="a", name="a.pdf"), _item(file="b", name="b.pdf")], claimed_total=1,
    )

    _, print_jobs = order_service.get_order_detail(order.order_id)
    assert sorted(r.file_ref for r in print_jobs) == ["a", "b"]
