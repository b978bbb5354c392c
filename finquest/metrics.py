import calendar
import math
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from finquest.domain import BurnRate, Transaction
from finquest.filters import tx_day

DEFAULT_EXHAUSTION_DAYS = 30


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_financial_health_score(
    income: float, expenses: float, total_budget: float, total_spent: float
) -> int:
    score = 0

    # savings rate, up to 40
    savings_rate = (income - expenses) / income * 100 if income > 0 else 0
    if savings_rate >= 20:
        score += 40
    elif savings_rate >= 10:
        score += 25
    elif savings_rate > 0:
        score += 10

    # budget adherence, up to 30
    if total_budget > 0:
        adherence = total_spent / total_budget * 100
        if adherence <= 85:
            score += 30
        elif adherence <= 100:
            score += 15

    # expense to income ratio, up to 30
    ratio = expenses / income * 100 if income > 0 else 100
    if ratio < 50:
        score += 30
    elif ratio < 70:
        score += 20
    elif ratio < 90:
        score += 10

    return min(100, score)


def calculate_discipline_score(transactions: Iterable[Transaction], daily_budget: float) -> int:
    """Percentage of spending days whose expenses stayed within ``daily_budget``."""
    trans = tuple(transactions)
    if not trans:
        return 50

    daily: dict[str, float] = defaultdict(float)
    for t in trans:
        if t.type == "expense":
            daily[tx_day(t)] += t.amount

    if not daily:
        return 100
    within = sum(1 for spent in daily.values() if spent <= daily_budget)
    return round_half_up(within / len(daily) * 100)


def calculate_consistency_score(savings_streak_months: int, income: float, expenses: float) -> int:
    score = min(50, savings_streak_months * 10)
    if income > 0 and income - expenses > 0:
        score += 50
    return min(100, score)


def calculate_burn_rate(
    current_expenses: float, total_budget: float, today: Optional[date] = None
) -> BurnRate:
    today = today or date.today()
    days_in_month = calendar.monthrange(today.year, today.month)[1]

    daily = current_expenses / today.day
    projected = daily * days_in_month

    days_left = DEFAULT_EXHAUSTION_DAYS
    if total_budget > 0 and daily > 0:
        remaining = total_budget - current_expenses
        days_left = math.floor(remaining / daily) if remaining > 0 else 0

    return BurnRate(
        daily_burn_rate=daily,
        projected_spend=projected,
        days_until_exhaustion=days_left,
        is_over_budget=projected > total_budget,
    )


def calculate_growth_rate(current_expenses: float, last_expenses: float) -> float:
    if last_expenses == 0:
        return 0.0
    return (current_expenses - last_expenses) / last_expenses * 100


def health_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Critical"
