"""Payment gateway service.

Routes payment verification to the adapter for the payment method.
No business logic here - only gateway coordination.
"""

from decimal import Decimal

from hotelops.config import settings
from hotelops.gateways.base import GatewayType, PaymentGateway, PaymentResult
from hotelops.gateways.card import CardGateway
from hotelops.gateways.cash import CashGateway


def _is_production() -> bool:
    """Check if running in production environment."""
    return settings.environment == "production"


def _assert_production_for_real_gateway(gateway: PaymentGateway) -> None:
    """Block live card processing outside production.

    Raises:
        RuntimeError: If a non-sandbox card processor is used outside production
    """
    if gateway.gateway_type == GatewayType.CARD and not _is_production():
        if isinstance(gateway, CardGateway) and (gateway.is_sandbox or gateway.is_simulated):
            return
        raise RuntimeError(
            f"Cannot execute live card gateway operations in {settings.environment} "
            "environment. Set ENVIRONMENT=production or use sandbox mode."
        )


class GatewayService:
    """Service for managing payment gateway operations."""

    def __init__(self, gateways: dict[GatewayType, PaymentGateway] | None = None):
        self._gateways: dict[GatewayType, PaymentGateway] = dict(gateways or {})

    def _get_gateway(self, gateway_type: str | GatewayType) -> PaymentGateway:
        """Get or create gateway instance."""
        gateway_type = GatewayType(gateway_type)

        if gateway_type not in self._gateways:
            if gateway_type == GatewayType.CARD:
                self._gateways[gateway_type] = CardGateway()
            else:
                self._gateways[gateway_type] = CashGateway()

        return self._gateways[gateway_type]

    async def verify_payment(
        self,
        gateway_type: str | GatewayType,
        transaction_id: str | None,
        amount: Decimal,
        currency: str,
        reference_id: str,
        confirmed: bool = False,
    ) -> PaymentResult:
        """Verify payment via the method's gateway."""
        gateway = self._get_gateway(gateway_type)
        # Environment safety: block live card processing in non-production
        _assert_production_for_real_gateway(gateway)
        return await gateway.verify_payment(
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            reference_id=reference_id,
            confirmed=confirmed,
        )


# Singleton instance
gateway_service = GatewayService()
