import hashlib
import hmac
import json
from dataclasses import replace

import pytest

from conftest import SENDER
from tripbot import messages
from tripbot.agents.payment import charge_reference, make_reference, run_fulfilment_agent
from tripbot.models import PaymentStatus
from tripbot.providers.keyword_places import KeywordPlaceExtractor
from tripbot.server import create_app
from tripbot.services import build_services

RAW_ITINERARY = """**__4-Day Nairobi & Diani Escape__**

*Day 1: Arrive in Nairobi*
• Morning: Land at JKIA
• Afternoon: Giraffe Centre [Book Tour Here]({{TOUR_RECOMMENDED::NAIROBI}})

*Day 3: Fly to Diani (Flight ~1 hour)*
• Morning: Beach time [Book Tour Here]({{TOUR_RECOMMENDED::DIANI}})

DESTINATIONS: Nairobi | Diani"""


def charge_event(reference, status="success", event="charge.success"):
    return {"event": event, "data": {"reference": reference, "status": status, "amount": 60000}}


@pytest.fixture
def pending(repository):
    row = repository.create_pending(
        sender=SENDER,
        last_service="tours",
        last_destination="Nairobi",
        raw_details="Nairobi and Diani, 4 days, mid budget, August",
        amount=60000,
        currency="KES",
    )
    reference = make_reference(row.id)
    repository.attach_payment_reference(row.id, reference)
    return repository.get(row.id)


def post_event(client, event, headers=None):
    return client.post(
        "/paystack/webhook",
        data=json.dumps(event),
        content_type="application/json",
        headers=headers or {},
    )


def test_charge_reference():
    assert charge_reference(charge_event("R1")) == "R1"
    assert charge_reference(charge_event("R1", status="failed")) is None
    assert charge_reference(charge_event("R1", event="transfer.success")) is None
    assert charge_reference({"event": "charge.success"}) is None
    assert charge_reference(None) is None


def test_make_reference():
    ref = make_reference(42)
    prefix, request_id, millis = ref.split("_")
    assert prefix == "ITIN"
    assert request_id == "42"
    assert millis.isdigit()


def test_paid_webhook_delivers_pdf(client, services, pending, messenger, completion, storage):
    completion.replies.append(RAW_ITINERARY)

    resp = post_event(client, charge_event(pending.payment_reference))
    assert resp.status_code == 200
    assert resp.data == b""

    row = services.repository.get(pending.id)
    assert row.payment_status == PaymentStatus.PAID.value
    assert row.editable_until is not None
    assert "4-Day Nairobi & Diani Escape" in row.itinerary_text
    assert "{{" not in row.itinerary_text
    assert "DESTINATIONS" not in row.itinerary_text

    key = f"itineraries/itinerary_{pending.id}.pdf"
    assert storage.objects[key][0].startswith(b"%PDF")
    assert storage.objects[key][1] == "application/pdf"
    assert row.itinerary_pdf_url == f"https://files.test/{key}"

    (_, pdf_body, media), (_, confirm, _) = messenger.sent[-2:]
    assert media == row.itinerary_pdf_url
    assert pdf_body == messages.paid_pdf_text("Nairobi")
    assert confirm == messages.PDF_SENT_CONFIRMATION


def test_redelivered_webhook_is_a_noop(client, services, pending, messenger, completion):
    completion.replies.append(RAW_ITINERARY)
    post_event(client, charge_event(pending.payment_reference))
    sent = len(messenger.sent)
    calls = len(completion.calls)

    resp = post_event(client, charge_event(pending.payment_reference))
    assert resp.status_code == 200
    assert len(messenger.sent) == sent
    assert len(completion.calls) == calls
    assert services.repository.get(pending.id).payment_status == PaymentStatus.PAID.value


def test_unknown_reference_is_ignored(client, pending, messenger):
    resp = post_event(client, charge_event("ITIN_999_1"))
    assert resp.status_code == 200
    assert messenger.sent == []


def test_other_events_are_ignored(client, services, pending, messenger):
    post_event(client, charge_event(pending.payment_reference, status="failed"))
    post_event(client, charge_event(pending.payment_reference, event="refund.processed"))
    assert messenger.sent == []
    assert services.repository.get(pending.id).payment_status == PaymentStatus.PENDING.value


def test_malformed_body_still_acknowledged(client, messenger):
    resp = client.post("/paystack/webhook", data=b"not json", content_type="application/json")
    assert resp.status_code == 200
    assert messenger.sent == []


def test_upload_failure_falls_back_to_text(client, services, pending, messenger, completion, storage):
    completion.replies.append(RAW_ITINERARY)
    storage.fail = True

    post_event(client, charge_event(pending.payment_reference))

    row = services.repository.get(pending.id)
    assert row.itinerary_pdf_url is None
    assert row.itinerary_text
    to, body, media = messenger.sent[-1]
    assert media is None
    assert body.startswith("🎉 *Payment received successfully!*")
    assert "*draft itinerary* for *Nairobi*" in body
    assert "4-Day Nairobi & Diani Escape" in body


def test_text_fallback_is_capped(services, pending, messenger, completion, storage):
    completion.replies.append("Day 1: Nairobi\n" + "z" * 4000)
    storage.fail = True

    run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    body = messenger.sent[-1][1]
    assert "z" * 1485 in body
    assert "z" * 1501 not in body
    assert messages.SHORTENED_NOTICE in body


def test_render_failure_falls_back_to_text(services, pending, messenger, completion, storage, monkeypatch):
    completion.replies.append(RAW_ITINERARY)

    def broken(*args, **kwargs):
        raise ValueError("bad font")

    monkeypatch.setattr(services.pipeline, "renderer", broken)
    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    assert storage.objects == {}
    assert [t["node"] for t in state["trace"]] == ["generate", "persist", "render", "compose_text", "notify"]
    assert messenger.sent[-1][2] is None


def test_media_failure_sends_text_instead(client, services, pending, messenger, completion):
    completion.replies.append(RAW_ITINERARY)
    messenger.fail_media = True

    post_event(client, charge_event(pending.payment_reference))

    bodies = messenger.bodies()
    assert any(b.startswith("🎉 *Payment received successfully!*") and "4-Day" in b for b in bodies)
    assert bodies[-1] == messages.PDF_SENT_CONFIRMATION


def test_completion_failure_uses_fallback_itinerary(services, pending, messenger, completion, completion_error):
    completion.replies.append(completion_error)

    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    row = services.repository.get(pending.id)
    assert row.itinerary_text.startswith("🧳 *Draft Itinerary for Nairobi*")
    assert "*Day 4:*" in row.itinerary_text
    assert "🔗 *Book tours & activities*" in row.itinerary_text
    assert state["trace"][0] == {"node": "generate", "status": "fallback", "strategy": "section",
                                 "error": "model unavailable"}
    assert messenger.sent[-2][2] == row.itinerary_pdf_url


def test_full_pipeline_trace(services, pending, completion):
    completion.replies.append(RAW_ITINERARY)
    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))
    assert [t["node"] for t in state["trace"]] == [
        "generate", "persist", "render", "upload", "record_pdf", "compose_pdf", "notify",
    ]
    assert all(t["status"] == "ok" for t in state["trace"])


# ---------------------------
# Signature check
# ---------------------------
@pytest.fixture
def signed_client(settings, engine, messenger, gateway, storage, completion):
    services = build_services(
        replace(settings, paystack_secret_key="sk_test_secret"),
        engine=engine,
        messenger=messenger,
        gateway=gateway,
        storage=storage,
        completion=completion,
        places=KeywordPlaceExtractor(),
    )
    return create_app(services).test_client()


def test_bad_signature_is_ignored(signed_client, repository, pending, messenger):
    resp = post_event(signed_client, charge_event(pending.payment_reference),
                      headers={"x-paystack-signature": "deadbeef"})
    assert resp.status_code == 200
    assert repository.get(pending.id).payment_status == PaymentStatus.PENDING.value
    assert messenger.sent == []


def test_valid_signature_is_processed(signed_client, repository, pending, completion):
    completion.replies.append(RAW_ITINERARY)
    body = json.dumps(charge_event(pending.payment_reference)).encode()
    signature = hmac.new(b"sk_test_secret", body, hashlib.sha512).hexdigest()

    resp = signed_client.post("/paystack/webhook", data=body, content_type="application/json",
                              headers={"x-paystack-signature": signature})
    assert resp.status_code == 200
    assert repository.get(pending.id).payment_status == PaymentStatus.PAID.value


# ---------------------------
# Database and transport failures after payment
# ---------------------------
def test_pdf_url_save_failure_still_sends_pdf(client, services, pending, messenger, completion, monkeypatch):
    completion.replies.append(RAW_ITINERARY)

    def broken(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(services.repository, "save_pdf_url", broken)
    resp = post_event(client, charge_event(pending.payment_reference))
    assert resp.status_code == 200

    (_, pdf_body, media), (_, confirm, _) = messenger.sent[-2:]
    assert pdf_body == messages.paid_pdf_text("Nairobi")
    assert media == f"https://files.test/itineraries/itinerary_{pending.id}.pdf"
    assert confirm == messages.PDF_SENT_CONFIRMATION


def test_pdf_url_save_failure_is_traced(services, pending, completion, monkeypatch):
    completion.replies.append(RAW_ITINERARY)

    def broken(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(services.repository, "save_pdf_url", broken)
    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    assert [t["node"] for t in state["trace"]] == [
        "generate", "persist", "render", "upload", "record_pdf", "compose_pdf", "notify",
    ]
    assert state["trace"][4] == {"node": "record_pdf", "status": "failed", "error": "db down"}
    assert state["trace"][-1]["status"] == "ok"


def test_itinerary_save_failure_still_delivers(services, pending, messenger, completion, monkeypatch):
    completion.replies.append(RAW_ITINERARY)

    def broken(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(services.repository, "save_itinerary_text", broken)
    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    assert state["trace"][1] == {"node": "persist", "status": "failed", "error": "db down"}
    assert state["trace"][-1]["node"] == "notify"
    (_, pdf_body, media), (_, confirm, _) = messenger.sent[-2:]
    assert pdf_body == messages.paid_pdf_text("Nairobi")
    assert media is not None
    assert confirm == messages.PDF_SENT_CONFIRMATION
    assert services.repository.get(pending.id).payment_status == PaymentStatus.PAID.value


def test_media_connection_error_sends_text_and_confirmation(services, pending, messenger, completion):
    completion.replies.append(RAW_ITINERARY)
    messenger.media_error = ConnectionError("connection reset")

    state = run_fulfilment_agent(services.repository, services.pipeline, charge_event(pending.payment_reference))

    bodies = messenger.bodies()
    assert bodies[-2].startswith("🎉 *Payment received successfully!*")
    assert "4-Day Nairobi & Diani Escape" in bodies[-2]
    assert bodies[-1] == messages.PDF_SENT_CONFIRMATION
    assert state["trace"][-1] == {"node": "notify", "status": "ok", "sent": 2}
    statuses = [m.status for m in services.repository.messages_for(SENDER)]
    assert statuses == ["failed", "sent", "sent"]
