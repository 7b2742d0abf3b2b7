"""
Level income calculation.

Pure helpers: which percentage applies to an ancestor and how much it is.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from rewardledger.models.package_tier import PackageTier
from rewardledger.utils.money import ZERO, percent_of, round_down


def resolve_level_percent(
    level: int,
    ancestor_package: PackageTier | None,
    investing_package: PackageTier | None,
    default_percents: Sequence[Decimal],
) -> Decimal:
    """
    Percentage paid to the ancestor at level.

    Lookup order: ancestor's package table, then the investing package
    table, then the default table. A missing or zero entry falls through.

    Args:
        level: 1-based level (1 = direct sponsor)
        ancestor_package: Package held by the ancestor
        investing_package: Package being bought
        default_percents: Default table (index 0 = level 1)

    Returns:
        Percent (0 when no table has a positive entry)
    """
    for package in (ancestor_package, investing_package):
        if package is None:
            continue
        percent = package.level_percent(level)
        if percent is not None and percent > 0:
            return percent

    if 1 <= level <= len(default_percents):
        percent = Decimal(str(default_percents[level - 1]))
        if percent > 0:
            return percent
    return ZERO


def calculate_commission(gross_amount: Decimal, percent: Decimal) -> Decimal:
    """``gross * percent / 100`` rounded down to the cent."""
    if percent <= 0:
        return ZERO
    return round_down(percent_of(gross_amount, percent))


@dataclass(frozen=True)
class LevelPlan:
    """Ancestor resolved before any money moves."""

    level: int
    sponsor_id: int
    percent: Decimal
    amount: Decimal
    skip_reason: str | None = None


@dataclass(frozen=True)
class LevelPayout:
    """Level income credited (or found already credited)."""

    level: int
    sponsor_id: int
    percent: Decimal
    amount: Decimal
    transaction_id: int
    duplicate: bool = False


@dataclass(frozen=True)
class LevelFailure:
    """Ancestor whose payout failed."""

    level: int
    sponsor_id: int
    error_code: str | None
    error: str | None


@dataclass
class CommissionReport:
    """Outcome of distributing one investment event."""

    event_id: str
    investor_id: int
    gross_amount: Decimal
    payouts: list[LevelPayout] = field(default_factory=list)
    skipped: list[LevelPlan] = field(default_factory=list)
    failures: list[LevelFailure] = field(default_factory=list)

    @property
    def total_paid(self) -> Decimal:
        """Amount credited by this invocation (duplicates excluded)."""
        return sum(
            (p.amount for p in self.payouts if not p.duplicate), ZERO
        )

    @property
    def is_complete(self) -> bool:
        return not self.failures
