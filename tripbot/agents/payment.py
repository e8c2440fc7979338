from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Optional

from tripbot.models import ItineraryRequest
from tripbot.providers.base import PaymentGateway, PaymentLink
from tripbot.repository import ItineraryRepository
from tripbot.utils.text import customer_email

if TYPE_CHECKING:
    from tripbot.graph.delivery import DeliveryPipeline

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = "charge.success"


def make_reference(request_id: int) -> str:
    return f"ITIN_{request_id}_{int(time.time() * 1000)}"


def run_checkout_agent(
    repository: ItineraryRepository,
    gateway: PaymentGateway,
    sender: str,
    last_service: Optional[str],
    last_destination: Optional[str],
    details: str,
    amount: int,
    currency: str,
    email_domain: str,
) -> tuple[ItineraryRequest, PaymentLink]:
    """Persist a pending request and open a payment for it."""
    row = repository.create_pending(
        sender=sender,
        last_service=last_service,
        last_destination=last_destination,
        raw_details=details,
        amount=amount,
        currency=currency,
    )
    reference = make_reference(row.id)
    # stored before the gateway call so an early webhook can still find the row
    repository.attach_payment_reference(row.id, reference)
    row.payment_reference = reference

    link = gateway.initialize(
        amount=amount,
        currency=currency,
        email=customer_email(sender, email_domain),
        reference=reference,
        metadata={
            "whatsapp_number": sender,
            "itinerary_request_id": row.id,
            "purpose": "custom_itinerary",
        },
    )
    logger.info("Payment initialised for request %s (ref %s)", row.id, reference)
    return row, link


def charge_reference(event: Any) -> Optional[str]:
    """Reference of a successful charge event, else None."""
    if not isinstance(event, dict) or event.get("event") != CHARGE_SUCCESS:
        return None
    data = event.get("data") or {}
    if not isinstance(data, dict) or data.get("status") != "success":
        return None
    reference = data.get("reference")
    return reference if isinstance(reference, str) and reference else None


def run_fulfilment_agent(
    repository: ItineraryRepository,
    pipeline: DeliveryPipeline,
    event: Any,
) -> Optional[dict]:
    """
    Act on a payment notification: flip the matching request to paid and
    deliver its itinerary. Redelivered or unknown references are a no-op.
    """
    reference = charge_reference(event)
    if reference is None:
        event_type = event.get("event") if isinstance(event, dict) else None
        logger.info("Ignoring payment event %r", event_type)
        return None

    row = repository.mark_paid(reference)
    if row is None:
        logger.info("No pending itinerary request for reference %s (unknown or already paid)", reference)
        return None

    logger.info("Request %s marked paid (ref %s)", row.id, reference)
    return pipeline.deliver_paid(row)
