"""
Paystack payment verification
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import PAYSTACK_BASE_URL, PAYSTACK_SECRET_KEY

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The gateway could not be reached or returned something unusable"""


@dataclass
class PaymentVerification:
    successful: bool
    amount: float  # Naira
    reference: str
    gateway_status: Optional[str] = None


class PaymentGateway:
    """Verifies transaction references against Paystack"""

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        self.secret_key = secret_key or PAYSTACK_SECRET_KEY
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")

    async def verify(self, reference: str) -> PaymentVerification:
        if not self.secret_key:
            logger.error("❌ PAYSTACK_SECRET_KEY not configured")
            raise PaymentGatewayError("Payment gateway not configured")

        url = f"{self.base_url}/transaction/verify/{reference}"
        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.get(
                    url, headers={"Authorization": f"Bearer {self.secret_key}"}
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack unreachable while verifying {reference}: {e}")
            raise PaymentGatewayError("Payment gateway unreachable") from e

        if response.status_code >= 500:
            logger.error(f"❌ Paystack error {response.status_code} for {reference}")
            raise PaymentGatewayError(f"Payment gateway error ({response.status_code})")

        try:
            body = response.json()
        except ValueError as e:
            raise PaymentGatewayError("Malformed payment gateway response") from e

        data = body.get("data") or {}
        # Paystack answers 400 with status false for unknown references
        if response.status_code != 200 or not body.get("status"):
            logger.warning(f"⚠️ Paystack rejected reference {reference}: {body.get('message')}")
            return PaymentVerification(False, 0.0, reference, data.get("status"))

        gateway_status = data.get("status")
        amount = float(data.get("amount") or 0) / 100  # kobo -> naira
        logger.info(f"💳 Paystack verified {reference}: status={gateway_status} amount={amount}")
        return PaymentVerification(gateway_status == "success", amount, reference, gateway_status)


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency (overridden in tests)"""
    return PaymentGateway()
