"""Card processor gateway adapter."""

import logging
import uuid
from decimal import Decimal

import httpx

from hotelops.config import settings
from hotelops.core.exceptions import UpstreamUnavailable
from hotelops.gateways.base import GatewayType, PaymentGateway, PaymentResult

logger = logging.getLogger(__name__)

CAPTURED_STATUSES = ("succeeded", "captured", "paid")


class CardGateway(PaymentGateway):
    """Verifies card transactions with the configured processor.

    Without a processor URL the gateway runs in simulated mode and accepts
    the transaction as reported by the terminal; that is refused in
    production.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = settings.card_gateway_url
        self.api_key = settings.card_gateway_api_key
        self.sandbox = settings.card_gateway_sandbox

        # Environment safety: force sandbox in non-production
        if settings.environment != "production":
            self.sandbox = True

        self._transport = transport

    @property
    def is_sandbox(self) -> bool:
        """Explicit sandbox flag for external checks."""
        return self.sandbox

    @property
    def is_simulated(self) -> bool:
        return not self.base_url

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.CARD

    async def verify_payment(
        self,
        transaction_id: str | None,
        amount: Decimal,
        currency: str,
        reference_id: str,
        confirmed: bool = False,
    ) -> PaymentResult:
        """Confirm the transaction was captured for the full amount."""
        if self.is_simulated:
            if settings.environment == "production":
                return PaymentResult(
                    success=False,
                    transaction_id=transaction_id,
                    error_message="Card processor is not configured",
                )
            return PaymentResult(
                success=True,
                transaction_id=transaction_id or f"sim_{uuid.uuid4().hex[:12]}",
                raw_response={"type": "simulated", "status": "succeeded"},
            )

        if not transaction_id:
            return PaymentResult(success=False, error_message="Card payments require a transaction id")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=10.0,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/transactions/verify",
                    json={
                        "transaction_id": transaction_id,
                        "amount": str(amount),
                        "currency": currency,
                        "reference": reference_id,
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Card processor unreachable: {e}")
            raise UpstreamUnavailable("card-gateway", str(e))

        if response.status_code >= 500:
            raise UpstreamUnavailable("card-gateway", f"HTTP {response.status_code}")

        data = response.json() if response.content else {}
        if response.is_error:
            return PaymentResult(
                success=False,
                transaction_id=transaction_id,
                error_message=data.get("message") or f"Card verification failed (HTTP {response.status_code})",
                raw_response=data,
            )

        status = str(data.get("status", "")).lower()
        captured = Decimal(str(data.get("amount", "0")))
        if status not in CAPTURED_STATUSES:
            return PaymentResult(
                success=False,
                transaction_id=transaction_id,
                error_message=f"Card transaction is {status or 'unknown'}",
                raw_response=data,
            )
        if captured != amount:
            return PaymentResult(
                success=False,
                transaction_id=transaction_id,
                error_message=f"Card transaction captured {captured}, expected {amount}",
                raw_response=data,
            )
        return PaymentResult(success=True, transaction_id=transaction_id, raw_response=data)
