import logging
from datetime import date, timedelta
from typing import Iterable, Optional, Union

from finquest.domain import PERIOD_PATTERNS, ClaimedTask, Transaction
from finquest.filters import by_month, iter_transactions, total_amount
from finquest.rotation import period_token

logger = logging.getLogger(__name__)

Claim = Union[ClaimedTask, str]


def as_claim(item: Claim) -> Optional[ClaimedTask]:
    if isinstance(item, ClaimedTask):
        return item
    return ClaimedTask.parse(item)


def period_tokens(claimed: Iterable[Claim], kind: str) -> frozenset[str]:
    pattern = PERIOD_PATTERNS[kind]
    tokens = set()
    for item in claimed:
        claim = as_claim(item)
        if claim is not None and pattern.match(claim.period):
            tokens.add(claim.period)
    return frozenset(tokens)


def previous_period(kind: str, day: date) -> date:
    if kind == "daily":
        return day - timedelta(days=1)
    if kind == "weekly":
        return day - timedelta(weeks=1)
    if kind == "monthly":
        return day.replace(day=1) - timedelta(days=1)
    raise ValueError(f"unknown period kind: {kind}")


def calculate_streak(claimed: Iterable[Claim], kind: str, today: Optional[date] = None) -> int:
    """Count consecutive claimed periods ending today, or ending one period ago
    when nothing has been claimed yet in the current period."""
    tokens = period_tokens(claimed, kind)
    if not tokens:
        return 0

    cursor = today or date.today()
    if period_token(kind, cursor) not in tokens:
        cursor = previous_period(kind, cursor)

    streak = 0
    while period_token(kind, cursor) in tokens:
        streak += 1
        cursor = previous_period(kind, cursor)
    return streak


def calculate_daily_streak(claimed: Iterable[Claim], today: Optional[date] = None) -> int:
    return calculate_streak(claimed, "daily", today)


def calculate_weekly_streak(claimed: Iterable[Claim], today: Optional[date] = None) -> int:
    return calculate_streak(claimed, "weekly", today)


def calculate_monthly_streak(claimed: Iterable[Claim], today: Optional[date] = None) -> int:
    return calculate_streak(claimed, "monthly", today)


def days_since_check_in(last_check_in: str, today: Optional[date] = None) -> Optional[int]:
    if not last_check_in:
        return None
    last = date.fromisoformat(last_check_in[:10])
    return ((today or date.today()) - last).days


def savings_streak_months(transactions: Iterable[Transaction], today: Optional[date] = None) -> int:
    """Completed months, newest first, in which income exceeded expenses."""
    trans = tuple(transactions)
    if not trans:
        return 0
    earliest = min(t.date[:7] for t in trans)

    cursor = previous_period("monthly", today or date.today())
    streak = 0
    while period_token("monthly", cursor) >= earliest:
        month = tuple(iter_transactions(trans, by_month(period_token("monthly", cursor))))
        income = total_amount(month, "income")
        if income <= 0 or income <= total_amount(month, "expense"):
            break
        streak += 1
        cursor = previous_period("monthly", cursor)
    logger.debug("savings streak of %d months", streak)
    return streak
