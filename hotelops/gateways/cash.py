"""Cash-at-reception gateway adapter."""

from decimal import Decimal

from hotelops.gateways.base import GatewayType, PaymentGateway, PaymentResult


class CashGateway(PaymentGateway):
    """Cash collected at the front desk.

    There is nothing to verify remotely; the receiving staff member's
    confirmation is the only evidence, so it is required.
    """

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.CASH

    async def verify_payment(
        self,
        transaction_id: str | None,
        amount: Decimal,
        currency: str,
        reference_id: str,
        confirmed: bool = False,
    ) -> PaymentResult:
        if not confirmed:
            return PaymentResult(
                success=False,
                transaction_id=transaction_id,
                error_message="Cash receipt has not been confirmed by staff",
            )
        return PaymentResult(
            success=True,
            transaction_id=transaction_id or f"cash_{reference_id}",
            raw_response={
                "type": "cash",
                "status": "received",
                "amount": str(amount),
                "currency": currency,
            },
        )
