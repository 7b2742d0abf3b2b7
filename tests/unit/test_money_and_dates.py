"""
Tests for money and business-day helpers.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from rewardledger.services.ledger.wallet_ledger import parse_amount, parse_wallet
from rewardledger.models.enums import WalletType
from rewardledger.utils.datetime_utils import business_day, day_bounds, month_start
from rewardledger.utils.exceptions import InvalidAmount, InvalidWallet
from rewardledger.utils.money import round_down, round_half_up, to_decimal


class TestMoney:
    """Test Decimal helpers."""

    def test_to_decimal_from_string(self):
        assert to_decimal("10.50") == Decimal("10.50")

    def test_to_decimal_rejects_float(self):
        with pytest.raises(ValueError):
            to_decimal(10.5)

    def test_to_decimal_rejects_bool(self):
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_rounding(self):
        assert round_half_up(Decimal("0.125")) == Decimal("0.13")
        assert round_down(Decimal("0.129")) == Decimal("0.12")


class TestParseAmount:
    """Test amount validation used by the ledger."""

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "NaN"])
    def test_invalid(self, value):
        with pytest.raises(InvalidAmount):
            parse_amount(value)

    def test_float_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount(1.5)

    def test_valid(self):
        assert parse_amount(5) == Decimal("5")

    def test_wallet(self):
        assert parse_wallet("upgrade") == WalletType.UPGRADE
        with pytest.raises(InvalidWallet):
            parse_wallet("savings")


class TestBusinessDay:
    """Test business calendar day."""

    def test_utc(self):
        moment = datetime(2026, 3, 15, 23, 30, tzinfo=UTC)
        assert business_day(moment, "UTC") == date(2026, 3, 15)

    def test_timezone_shifts_day(self):
        """23:30 UTC is already the next day in India."""
        moment = datetime(2026, 3, 15, 23, 30, tzinfo=UTC)
        assert business_day(moment, "Asia/Kolkata") == date(2026, 3, 16)

    def test_day_bounds(self):
        start, end = day_bounds(date(2026, 3, 16), "Asia/Kolkata")
        assert start == datetime(2026, 3, 15, 18, 30, tzinfo=UTC)
        assert (end - start).total_seconds() == 86400

    def test_month_start(self):
        moment = datetime(2026, 3, 15, 10, 5, tzinfo=UTC)
        assert month_start(moment) == datetime(2026, 3, 1, tzinfo=UTC)
