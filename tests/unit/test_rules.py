"""Tests for compensation rule loading and validation."""

import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from rewardledger.config.rules import (
    CommissionRules,
    CompensationRules,
    TierRules,
    default_rules,
    load_rules,
    rules_from_settings,
)
from rewardledger.config.settings import Settings


class TestDefaultRules:
    """Test built-in rule set."""

    def test_game_caps(self):
        rules = default_rules()
        assert rules.games["casual"].max_per_day == 15
        assert rules.games["puzzle"].max_per_day == 10
        assert rules.games["action"].max_per_day == 8

    def test_video_rules(self):
        rules = default_rules()
        assert rules.videos["welcome"].one_time is True
        assert rules.videos["daily_ad"].daily_cap == 50
        assert rules.videos["game_unlock"].daily_cap is None
        assert rules.videos["game_unlock"].counts_as_gaming is True
        assert rules.videos["daily_ad"].counts_as_gaming is False

    def test_withdrawal_defaults(self):
        withdrawal = default_rules().withdrawal
        assert withdrawal.min_amount == Decimal("100")
        assert withdrawal.tds_percent == Decimal("10")

    def test_rules_are_frozen(self):
        rules = default_rules()
        with pytest.raises(ValidationError):
            rules.version = "other"


class TestValidation:
    """Test rule validation."""

    def test_level_percents_cannot_exceed_hundred(self):
        with pytest.raises(ValidationError):
            CommissionRules(default_level_percents=(Decimal("60"), Decimal("50")))

    def test_negative_level_percent(self):
        with pytest.raises(ValidationError):
            CommissionRules(default_level_percents=(Decimal("-1"),))

    def test_login_task_required(self):
        with pytest.raises(ValidationError):
            CompensationRules(daily_tasks={})

    def test_multiplier_for_price(self):
        tiers = TierRules()
        assert tiers.multiplier_for_price(None) == Decimal("1")
        assert tiers.multiplier_for_price(Decimal("4999.99")) == Decimal("1.5")


class TestLoadRules:
    """Test loading rules from JSON."""

    def test_none_returns_defaults(self):
        assert load_rules(None) == default_rules()

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(
            json.dumps(
                {
                    "version": "2026.2",
                    "withdrawal": {"tds_percent": "5", "min_amount": "200"},
                }
            ),
            encoding="utf-8",
        )
        rules = load_rules(path)
        assert rules.version == "2026.2"
        assert rules.withdrawal.tds_percent == Decimal("5")
        assert rules.withdrawal.min_amount == Decimal("200")
        # Unlisted sections keep their defaults
        assert rules.games["casual"].max_per_day == 15


class TestRulesFromSettings:
    """Test the RULES_FILE setting."""

    def test_unset_uses_defaults(self):
        app_settings = Settings(database_url="sqlite+aiosqlite://", rules_file=None)

        assert rules_from_settings(app_settings) == default_rules()

    def test_reads_configured_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(
            json.dumps({"version": "2026.3", "commission": {"max_levels": 5}}),
            encoding="utf-8",
        )
        app_settings = Settings(
            database_url="sqlite+aiosqlite://", rules_file=str(path)
        )

        rules = rules_from_settings(app_settings)

        assert rules.version == "2026.3"
        assert rules.commission.max_levels == 5
