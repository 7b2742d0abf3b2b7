"""
Reward claim results.
"""

from dataclasses import dataclass
from decimal import Decimal

from rewardledger.models.enums import WalletType
from rewardledger.models.transaction import Transaction


@dataclass(frozen=True)
class RewardClaim:
    """A credited reward."""

    activity: str
    amount: Decimal
    wallet: WalletType
    transaction: Transaction | None
    daily_count: int
    daily_cap: int | None = None

    @property
    def transaction_id(self) -> int | None:
        return self.transaction.id if self.transaction is not None else None


@dataclass(frozen=True)
class DailyTaskProgress:
    """Today's progress on one daily task."""

    task: str
    description: str
    target: int
    progress: int
    reward: Decimal
    claimable: bool = False
    claimed: bool = False

    @property
    def completed(self) -> bool:
        return self.progress >= self.target


@dataclass(frozen=True)
class DailyTaskBundle:
    """Read-only summary of today's daily tasks."""

    account_id: int
    day: str
    multiplier: Decimal
    tasks: list[DailyTaskProgress]

    @property
    def completed_count(self) -> int:
        return sum(1 for task in self.tasks if task.completed)

    @property
    def total_count(self) -> int:
        return len(self.tasks)

    @property
    def completion_percent(self) -> Decimal:
        if not self.tasks:
            return Decimal("0")
        return (
            Decimal(self.completed_count) * 100 / Decimal(self.total_count)
        ).quantize(Decimal("0.01"))

    @property
    def total_reward(self) -> Decimal:
        return sum((task.reward for task in self.tasks), Decimal("0"))
