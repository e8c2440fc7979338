from datetime import datetime, timedelta, timezone

from conftest import SENDER, expire_edit_window, make_paid_request
from tripbot.models import PaymentStatus


def _utc_naive(dt):
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _pending(repository, reference="REF_1", sender=SENDER):
    row = repository.create_pending(
        sender=sender,
        last_service="tours",
        last_destination="Nairobi",
        raw_details="Nairobi, 4 days",
        amount=60000,
        currency="KES",
    )
    repository.attach_payment_reference(row.id, reference)
    return row


def test_create_pending(repository):
    row = _pending(repository)
    stored = repository.get(row.id)
    assert stored.payment_status == PaymentStatus.PENDING.value
    assert stored.payment_reference == "REF_1"
    assert stored.raw_details == "Nairobi, 4 days"
    assert stored.created_at is not None
    assert stored.editable_until is None
    assert not stored.is_paid


def test_mark_paid_stamps_edit_window(repository):
    _pending(repository)
    row = repository.mark_paid("REF_1")

    assert row is not None
    assert row.is_paid
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    window = _utc_naive(row.editable_until) - now
    assert timedelta(days=2, hours=23) < window <= timedelta(days=3)


def test_mark_paid_is_idempotent(repository):
    _pending(repository)
    first = repository.mark_paid("REF_1")
    second = repository.mark_paid("REF_1")

    assert first is not None
    assert second is None
    assert repository.get_by_reference("REF_1").payment_status == PaymentStatus.PAID.value


def test_mark_paid_unknown_reference(repository):
    assert repository.mark_paid("NOPE") is None


def test_latest_paid_ignores_pending_and_other_senders(repository):
    older = make_paid_request(repository, text="old")
    newer = make_paid_request(repository, text="new")
    _pending(repository, reference="REF_PENDING")
    make_paid_request(repository, sender="whatsapp:+1555", text="someone else")

    latest = repository.latest_paid(SENDER)
    assert latest.id == newer.id != older.id
    assert latest.itinerary_text == "new"


def test_latest_paid_none(repository):
    _pending(repository)
    assert repository.latest_paid(SENDER) is None


def test_apply_edit_inside_window(repository):
    row = make_paid_request(repository, text="old plan")
    assert repository.apply_edit(row.id, "new plan", "make it 3 days")
    stored = repository.get(row.id)
    assert stored.itinerary_text == "new plan"
    assert stored.raw_details == "make it 3 days"


def test_apply_edit_after_window_changes_nothing(repository):
    row = make_paid_request(repository, text="old plan")
    expire_edit_window(repository, row.id)

    assert not repository.apply_edit(row.id, "new plan", "make it 3 days")
    assert repository.get(row.id).itinerary_text == "old plan"
    assert repository.editable_for(SENDER, row.id) is None


def test_editable_for(repository):
    row = make_paid_request(repository)
    assert repository.editable_for(SENDER).id == row.id
    assert repository.editable_for(SENDER, row.id).id == row.id
    assert repository.editable_for("whatsapp:+1555", row.id) is None


def test_pdf_url_overwritten_in_place(repository):
    row = make_paid_request(repository, pdf_url="https://files.test/a.pdf")
    repository.save_pdf_url(row.id, "https://files.test/b.pdf")
    assert repository.get(row.id).itinerary_pdf_url == "https://files.test/b.pdf"


def test_message_log(repository):
    repository.log_message(SENDER, "inbound", "hi")
    repository.log_message(SENDER, "outbound", "menu", status="sent")
    repository.log_message("whatsapp:+1555", "inbound", "other")

    log = repository.messages_for(SENDER)
    assert [(m.direction, m.body, m.status) for m in log] == [
        ("inbound", "hi", None),
        ("outbound", "menu", "sent"),
    ]
