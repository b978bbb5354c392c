"""Deterministic task rotation.

Every user sees the same tasks on a given day, week or month: the pools are
shuffled by a sine-hash generator seeded from the calendar period.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, TypeVar

from finquest.domain import ClaimedTask, Task, Transaction
from finquest.filters import in_period, iter_transactions
from finquest.rewards import DAILY_POOL, MONTHLY_POOL, TASK_POOLS, WEEKLY_POOL

T = TypeVar("T")

TASKS_PER_PERIOD = {"daily": 5, "weekly": 4, "monthly": 3}


def seeded_random(seed: int) -> float:
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def shuffle(items: Sequence[T], seed: int) -> list[T]:
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(seeded_random(seed + i) * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def day_token(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def week_token(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def month_token(day: date) -> str:
    return day.strftime("%Y-%m")


def period_token(kind: str, day: date) -> str:
    if kind == "daily":
        return day_token(day)
    if kind == "weekly":
        return week_token(day)
    if kind == "monthly":
        return month_token(day)
    raise ValueError(f"unknown period kind: {kind}")


def period_seed(kind: str, day: date) -> int:
    if kind == "daily":
        return day.year * 1000 + day.timetuple().tm_yday
    if kind == "weekly":
        year, week, _ = day.isocalendar()
        return year * 100 + week
    if kind == "monthly":
        # zero-based month, so March 2025 seeds 202502
        return day.year * 100 + day.month - 1
    raise ValueError(f"unknown period kind: {kind}")


def get_daily_tasks(day: date, currency: str = "USD") -> list[Task]:
    # "Log an Expense" always leads the daily list
    fixed, pool = DAILY_POOL[0], DAILY_POOL[1:]
    picked = [fixed] + shuffle(pool, period_seed("daily", day))[: TASKS_PER_PERIOD["daily"] - 1]
    return [template.build(currency) for template in picked]


def get_weekly_tasks(day: date, currency: str = "USD") -> list[Task]:
    picked = shuffle(WEEKLY_POOL, period_seed("weekly", day))[: TASKS_PER_PERIOD["weekly"]]
    return [template.build(currency) for template in picked]


def get_monthly_tasks(day: date, currency: str = "USD") -> list[Task]:
    picked = shuffle(MONTHLY_POOL, period_seed("monthly", day))[: TASKS_PER_PERIOD["monthly"]]
    return [template.build(currency) for template in picked]


ROTATIONS = {
    "daily": get_daily_tasks,
    "weekly": get_weekly_tasks,
    "monthly": get_monthly_tasks,
}


@dataclass(frozen=True)
class TaskStatus:
    task: Task
    claim: ClaimedTask
    progress: float
    is_claimed: bool

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.task.total

    @property
    def is_claimable(self) -> bool:
        return self.is_complete and not self.is_claimed


def task_board(
    kind: str,
    day: date,
    currency: str,
    transactions: Iterable[Transaction],
    claimed: Iterable[ClaimedTask],
    now: Optional[datetime] = None,
) -> list[TaskStatus]:
    """Rotation for the period containing ``day`` with progress and claim state."""
    if kind not in TASK_POOLS:
        raise ValueError(f"unknown period kind: {kind}")
    period_txs = tuple(iter_transactions(transactions, in_period(kind, day)))
    token = period_token(kind, day)
    claimed = frozenset(claimed)

    board = []
    for task in ROTATIONS[kind](day, currency):
        claim = ClaimedTask(task.id, token)
        progress = min(task.check_progress(period_txs, now), task.total)
        board.append(TaskStatus(task, claim, progress, claim in claimed))
    return board
