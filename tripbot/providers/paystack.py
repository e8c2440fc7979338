from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests

from tripbot.providers.base import PaymentError, PaymentGateway, PaymentLink

logger = logging.getLogger(__name__)


class PaystackGateway(PaymentGateway):
    """
    Paystack transaction initialisation.

    Amounts are in the smallest currency unit, as Paystack expects.
    """

    def __init__(
        self,
        secret_key: Optional[str],
        base_url: str = "https://api.paystack.co",
        callback_url: Optional[str] = None,
        timeout: int = 15,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.callback_url = callback_url
        self.timeout = timeout

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.secret_key:
            raise PaymentError("PAYSTACK_SECRET_KEY not configured")
        try:
            r = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.secret_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PaymentError(f"Paystack request failed: {e}") from e
        if r.status_code >= 400:
            raise PaymentError(f"Paystack error {r.status_code}: {r.text[:200]}")
        try:
            return r.json()
        except ValueError as e:
            raise PaymentError("Paystack returned a non-JSON body") from e

    def initialize(
        self,
        amount: int,
        currency: str,
        email: str,
        reference: str,
        metadata: dict,
    ) -> PaymentLink:
        payload: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "email": email,
            "reference": reference,
            "metadata": metadata,
        }
        if self.callback_url:
            payload["callback_url"] = self.callback_url

        data = self._post("/transaction/initialize", payload)
        if not data.get("status"):
            raise PaymentError(f"Paystack init failed: {data.get('message') or data}")
        url = (data.get("data") or {}).get("authorization_url")
        if not url:
            raise PaymentError("Paystack init returned no authorization_url")
        return PaymentLink(authorization_url=url, reference=reference)


def verify_signature(secret_key: Optional[str], raw_body: bytes, signature: Optional[str]) -> bool:
    """x-paystack-signature is the hex HMAC-SHA512 of the raw body keyed by the secret key."""
    if not secret_key:
        logger.warning("PAYSTACK_SECRET_KEY not set; accepting webhook without signature check")
        return True
    if not signature:
        return False
    expected = hmac.new(secret_key.encode("utf-8"), raw_body or b"", hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected, signature.strip())
