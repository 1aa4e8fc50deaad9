"""Base payment gateway interface.

Gateways confirm that money was actually collected. Business rules
(balances, overpayment, who may pay how) do NOT live in adapters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways, one per payment method."""

    CARD = "card"
    CASH = "cash"


@dataclass
class PaymentResult:
    """Result of a payment verification."""

    success: bool
    transaction_id: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def verify_payment(
        self,
        transaction_id: str | None,
        amount: Decimal,
        currency: str,
        reference_id: str,
        confirmed: bool = False,
    ) -> PaymentResult:
        """Verify that a payment was collected.

        Args:
            transaction_id: Processor transaction ID, if the method has one
            amount: Amount collected
            currency: Currency code (LKR)
            reference_id: Internal reference (booking id)
            confirmed: Staff confirmation that the money was received

        Returns:
            PaymentResult with the transaction id to record
        """
        pass
