"""Refund policy service for calculating refund amounts.

Implements the cancellation refund policy:
- Full refund (100%): Cancel 48+ hours before the tour starts
- Partial refund (50%): Cancel 24-48 hours before the tour starts
- No refund (0%): Cancel less than 24 hours before (or after) the start

All amounts are whole TWD.
"""

import datetime as dt
from decimal import Decimal

from guidee_shared.models import RefundPolicy

from .pricing import round_half_up


class RefundPolicyService:
    """Service for calculating refund snapshots based on cancellation timing.

    Policy tiers:
    - FULL (100%): hours_until_booking >= 48
    - PARTIAL (50%): 24 <= hours_until_booking < 48
    - NONE (0%): hours_until_booking < 24
    """

    # Policy thresholds (hours before the tour starts)
    FULL_REFUND_HOURS = 48
    PARTIAL_REFUND_HOURS = 24

    # Refund percentages
    FULL_REFUND_PERCENT = 100
    PARTIAL_REFUND_PERCENT = 50
    NO_REFUND_PERCENT = 0

    PROCESSING_FEE_RATE = Decimal("0.03")
    MAX_PROCESSING_FEE = 100

    @staticmethod
    def hours_until(booking_start: dt.datetime, now: dt.datetime) -> float:
        """Hours between now and the tour start (negative once started)."""
        return (booking_start - now).total_seconds() / 3600

    def refund_percentage(self, hours_until_booking: float) -> int:
        """Look up the refund tier for the given notice period."""
        if hours_until_booking >= self.FULL_REFUND_HOURS:
            return self.FULL_REFUND_PERCENT
        if hours_until_booking >= self.PARTIAL_REFUND_HOURS:
            return self.PARTIAL_REFUND_PERCENT
        return self.NO_REFUND_PERCENT

    def calculate(
        self,
        total: int,
        booking_start: dt.datetime,
        now: dt.datetime,
    ) -> RefundPolicy:
        """Calculate the refund snapshot for a cancellation.

        Args:
            total: Order total in TWD
            booking_start: Aware datetime the tour starts
            now: Aware datetime of the cancellation

        Returns:
            RefundPolicy with percentage, amount and processing fee
        """
        percentage = self.refund_percentage(self.hours_until(booking_start, now))
        refund_amount = round_half_up(Decimal(total) * percentage / 100)

        if percentage == self.NO_REFUND_PERCENT:
            processing_fee = 0
        else:
            processing_fee = min(
                self.MAX_PROCESSING_FEE,
                round_half_up(Decimal(refund_amount) * self.PROCESSING_FEE_RATE),
            )

        return RefundPolicy(
            is_refundable=percentage > 0,
            refund_percentage=percentage,
            refund_amount=refund_amount,
            processing_fee=processing_fee,
        )

    def get_policy_description(self) -> str:
        """Get human-readable description of the refund policy."""
        return (
            "Cancellation Policy:\n"
            "• 48+ hours before the tour: Full refund (100%)\n"
            "• 24-48 hours before the tour: Partial refund (50%)\n"
            "• Less than 24 hours before the tour: No refund\n"
            "• Refunds carry a 3% processing fee, capped at NT$100"
        )
