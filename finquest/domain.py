import re
from dataclasses import dataclass, field
from typing import Callable, Optional

DAY_TOKEN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
WEEK_TOKEN = re.compile(r"^\d{4}-W\d{2}$")
MONTH_TOKEN = re.compile(r"^\d{4}-\d{2}$")

PERIOD_PATTERNS = {
    "daily": DAY_TOKEN,
    "weekly": WEEK_TOKEN,
    "monthly": MONTH_TOKEN,
}


@dataclass(frozen=True)
class Transaction:
    id: str
    type: str            # "income" or "expense"
    amount: float
    category: str
    date: str            # "2025-09-01" or "2025-09-01T10:00:00"
    currency: str = "USD"
    merchant: str = ""
    payment_method: str = ""
    notes: str = ""
    created_at: str = ""


@dataclass(frozen=True)
class Budget:
    id: str
    month: str           # "YYYY-MM"
    total: float
    category_limits: dict = field(default_factory=dict)
    surplus_action: Optional[str] = None  # rollover | saved | ignored


@dataclass(frozen=True)
class SavingsGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    color: str = ""
    icon: str = ""
    deadline: Optional[str] = None
    is_completed: bool = False


@dataclass(frozen=True)
class Subscription:
    id: str
    title: str
    amount: float
    billing_date: str
    interval: str = "monthly"  # monthly | yearly
    payment_method: str = ""
    reminder_days_before: int = 3
    active: bool = True
    category: str = ""
    last_paid_date: Optional[str] = None
    last_payment_transaction_id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.last_payment_transaction_id is not None


@dataclass(frozen=True)
class ClaimedTask:
    """A task claim for one period, e.g. ``daily_saver`` on ``2025-03-04``."""
    task_id: str
    period: str

    @property
    def key(self) -> str:
        return f"{self.task_id}_{self.period}"

    @property
    def kind(self) -> Optional[str]:
        for kind, pattern in PERIOD_PATTERNS.items():
            if pattern.match(self.period):
                return kind
        return None

    @classmethod
    def parse(cls, key: str) -> Optional["ClaimedTask"]:
        # task ids may contain underscores, the period never does
        task_id, sep, period = key.rpartition("_")
        if not sep or not task_id:
            return None
        claim = cls(task_id, period)
        return claim if claim.kind else None


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    reason: str
    xp_earned: int = 0
    coins_earned: int = 0
    coins_spent: int = 0


@dataclass(frozen=True)
class Redemption:
    id: str
    date: str
    amount: float
    coins: int
    upi_id: str
    status: str = "pending"  # pending | completed | failed


@dataclass(frozen=True)
class GamificationProfile:
    level: int = 1
    xp: int = 0
    total_xp: int = 0
    coins: int = 0
    total_coins: int = 0
    streak: int = 0
    last_check_in: str = ""
    badges: frozenset = frozenset()
    claimed_tasks: frozenset = frozenset()   # of ClaimedTask
    history: tuple = ()                      # of HistoryEntry, newest first
    redemption_history: tuple = ()           # of Redemption
    created_at: str = ""


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str = ""


@dataclass(frozen=True)
class BadgeProgress:
    current: float
    target: float
    unit: str

    @property
    def is_complete(self) -> bool:
        return self.current >= self.target


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str
    reward: int
    total: float
    check_progress: Callable = field(compare=False, repr=False)


@dataclass(frozen=True)
class BurnRate:
    daily_burn_rate: float
    projected_spend: float
    days_until_exhaustion: int
    is_over_budget: bool
