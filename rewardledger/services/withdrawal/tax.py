"""
Withdrawal tax (TDS, tax deducted at source).
"""

from dataclasses import dataclass
from decimal import Decimal

from rewardledger.utils.money import percent_of, round_half_up


@dataclass(frozen=True)
class TdsBreakdown:
    """Gross amount split into withheld tax and net payout."""

    gross_amount: Decimal
    tds_amount: Decimal
    net_amount: Decimal
    tds_percent: Decimal


def calculate_tds(gross_amount: Decimal, tds_percent: Decimal) -> TdsBreakdown:
    """
    Split a withdrawal into tax and net payout.

    Tax is rounded half-up to the cent; net is the exact remainder so
    ``tds + net == gross`` always holds.

    Example:
        >>> calculate_tds(Decimal("1000"), Decimal("10"))
        TdsBreakdown(gross_amount=Decimal('1000'), tds_amount=Decimal('100.00'),
                     net_amount=Decimal('900.00'), tds_percent=Decimal('10'))
    """
    tax = round_half_up(percent_of(gross_amount, tds_percent))
    return TdsBreakdown(
        gross_amount=gross_amount,
        tds_amount=tax,
        net_amount=gross_amount - tax,
        tds_percent=tds_percent,
    )
