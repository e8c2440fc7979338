import logging
from typing import Optional

from flask import Flask, request, jsonify

from tripbot.agents.payment import run_fulfilment_agent
from tripbot.config import load_settings
from tripbot.logging_config import configure_logging
from tripbot.providers.paystack import verify_signature
from tripbot.services import Services, build_services

logger = logging.getLogger(__name__)


def create_app(services: Optional[Services] = None) -> Flask:
    services = services or build_services()
    app = Flask(__name__)
    app.extensions["tripbot"] = services

    @app.post("/webhook")
    def whatsapp_webhook():
        """
        Twilio inbound message hook (form-encoded From / Body).

        Always answers 200 with an empty body; replies go out through the
        messaging API, never in the HTTP response.
        """
        sender = (request.form.get("From") or "").strip()
        body = request.form.get("Body") or ""
        if not sender:
            logger.warning("Inbound message without a sender, ignored")
            return "", 200

        logger.info("Inbound from %s: %r", sender, body[:200])
        try:
            services.workflow.handle_incoming(sender, body)
        except Exception:
            logger.exception("Unhandled error for inbound message from %s", sender)
        return "", 200

    @app.post("/paystack/webhook")
    def paystack_webhook():
        raw = request.get_data()
        signature = request.headers.get("x-paystack-signature")
        if not verify_signature(services.settings.paystack_secret_key, raw, signature):
            logger.warning("Paystack webhook with bad signature ignored")
            return "", 200

        event = request.get_json(silent=True)
        try:
            run_fulfilment_agent(services.repository, services.pipeline, event)
        except Exception:
            # 200 anyway; redelivery is made safe by the pending -> paid update
            logger.exception("Error handling Paystack webhook")
        return "", 200

    @app.get("/payment/thanks")
    def payment_thanks():
        return (
            "Thank you! Your payment is being processed. "
            "You'll receive your itinerary on WhatsApp shortly.",
            200,
            {"Content-Type": "text/plain; charset=utf-8"},
        )

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings.log_level)
    # build_services creates the tables (simple dev mode)
    app = create_app(build_services(settings))
    app.run(host="0.0.0.0", port=settings.port)
