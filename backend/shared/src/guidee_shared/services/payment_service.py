"""Payment processing for orders.

Currently implements a mock payment provider. Tokens starting with
``tok_decline`` are declined, everything else succeeds, so flows can be
exercised deterministically. In production, plug in a real gateway behind
the PaymentProcessor protocol.
"""

import uuid
from typing import Protocol

from pydantic import BaseModel

from guidee_shared.models import PaymentDetails, PaymentMethod
from guidee_shared.utils.logging import get_logger

logger = get_logger(__name__)


class ChargeResult(BaseModel):
    """Outcome of a charge attempt."""

    success: bool
    transaction_id: str | None = None
    payment_details: PaymentDetails | None = None
    error: str | None = None


class PaymentProcessor(Protocol):
    def charge(
        self,
        order_id: str,
        method: PaymentMethod,
        token: str,
        amount: int,
    ) -> ChargeResult: ...


class MockPaymentProcessor:
    """Mock gateway that approves every token except ``tok_decline*``."""

    DECLINE_PREFIX = "tok_decline"

    def _generate_transaction_id(self) -> str:
        """Generate a unique transaction ID like txn_ABC123DEF456."""
        return f"txn_{uuid.uuid4().hex[:12].upper()}"

    def charge(
        self,
        order_id: str,
        method: PaymentMethod,
        token: str,
        amount: int,
    ) -> ChargeResult:
        logger.info(
            "Processing mock payment for order %s: method=%s amount=%d",
            order_id,
            method.value,
            amount,
        )

        if token.startswith(self.DECLINE_PREFIX):
            return ChargeResult(
                success=False,
                error="Payment was declined. Please check your payment method.",
            )

        details = None
        if method == PaymentMethod.CREDIT_CARD:
            details = PaymentDetails(card_last4="1234", card_brand="VISA")

        return ChargeResult(
            success=True,
            transaction_id=self._generate_transaction_id(),
            payment_details=details,
        )
