"""Static reward tables: XP constants, badges, task pools and currency scaling.

Task templates describe money thresholds in US dollars; ``currency_amount``
turns them into a round figure in the user's currency so that a task reads
"under ₹4,200" rather than "under ₹4,150.00".
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from finquest.domain import Badge, Task
from finquest.filters import tx_datetime, tx_day

XP_BASE = 100
XP_EXPONENT = 1.4
HISTORY_LIMIT = 50
COINS_PER_LEVEL = 10

XP_REWARDS = {
    "ADD_EXPENSE": 5,
    "ADD_INCOME": 8,
    "UNDER_DAILY_BUDGET": 10,
    "UNDER_MONTHLY_BUDGET": 100,
    "DAILY_CHECKIN": 2,
    "COMPLETE_CHALLENGE": 50,
    "FIRST_TRANSACTION": 20,
    "WEEK_STREAK": 30,
    "MONTH_STREAK": 200,
}

BADGES = {
    "first_steps": Badge("first_steps", "First Steps", "Added your first transaction", "👣"),
    "budget_ninja": Badge("budget_ninja", "Budget Ninja", "Stayed under budget for a month", "🥷"),
    "week_warrior": Badge("week_warrior", "Week Warrior", "7-day streak", "🔥"),
    "month_master": Badge("month_master", "Month Master", "30-day streak", "🏆"),
    "saver_pro": Badge("saver_pro", "Saver Pro", "Saved 20% of income", "💰"),
    "tracker_elite": Badge("tracker_elite", "Tracker Elite", "100 transactions logged", "📈"),
    "task_master": Badge("task_master", "Task Master", "Claimed 25 task rewards", "✅"),
}

# approximate units of currency per US dollar
USD_RATES = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "INR": 83.0,
    "JPY": 150.0,
    "CAD": 1.36,
    "AUD": 1.52,
    "SGD": 1.34,
    "AED": 3.67,
    "KZT": 450.0,
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
    "SGD": "S$",
    "AED": "د.إ",
    "KZT": "₸",
}

# redeemable value (base currency) -> coins; 100 coins per unit
REDEMPTION_OPTIONS = {
    100: 10_000,
    250: 25_000,
    500: 50_000,
    1000: 100_000,
}


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def clean_denomination(amount: float) -> int:
    if amount < 100:
        step = 5
    elif amount < 1000:
        step = 50
    else:
        step = 100
    return max(step, int(math.floor(amount / step + 0.5)) * step)


def currency_amount(base_usd: float, currency: str) -> int:
    """Convert a USD threshold to ``currency`` and round it to a clean figure."""
    rate = USD_RATES.get(currency.upper(), 1.0)
    return clean_denomination(base_usd * rate)


def format_money(amount: float, currency: str) -> str:
    return f"{currency_symbol(currency)}{amount:,.0f}"


@dataclass(frozen=True)
class TaskTemplate:
    id: str
    title: str
    description: str
    reward: int
    total: float
    progress: Callable = field(compare=False, repr=False)
    threshold_usd: Optional[float] = None
    total_is_threshold: bool = False

    def build(self, currency: str) -> Task:
        limit = currency_amount(self.threshold_usd, currency) if self.threshold_usd else None
        description = self.description
        if limit is not None:
            description = description.format(amount=format_money(limit, currency))
        progress = self.progress

        def check_progress(transactions, now: Optional[datetime] = None) -> float:
            return progress(tuple(transactions), limit, now or datetime.now())

        return Task(
            id=self.id,
            title=self.title,
            description=description,
            reward=self.reward,
            total=limit if self.total_is_threshold else self.total,
            check_progress=check_progress,
        )


def _count(kind: Optional[str] = None, pred: Callable = lambda t, limit: True):
    def _progress(txs, limit, now):
        return sum(1 for t in txs if (kind is None or t.type == kind) and pred(t, limit))

    return _progress


def _distinct(attr: Callable, kind: Optional[str] = None):
    def _progress(txs, limit, now):
        return len({attr(t) for t in txs if kind is None or t.type == kind})

    return _progress


def _is_food(t) -> bool:
    category = t.category.lower()
    return any(word in category for word in ("food", "dining", "groceries"))


def _no_spend_morning(txs, limit, now):
    if now.hour < 12:
        return 0
    morning = [t for t in txs if t.type == "expense" and tx_datetime(t).hour < 12]
    return 0 if morning else 1


def _income_sum(txs, limit, now):
    return sum(t.amount for t in txs if t.type == "income")


DAILY_POOL = (
    TaskTemplate("daily_log_expense", "Log an Expense", "Track at least one expense today", 5, 1,
                 _count("expense")),
    TaskTemplate("daily_check_in", "Daily Check-in", "Open the app and check your progress", 5, 1,
                 lambda txs, limit, now: 1),
    TaskTemplate("daily_smart_spender", "Smart Spender", "Log an expense under {amount}", 10, 1,
                 _count("expense", lambda t, limit: t.amount < limit), threshold_usd=50),
    TaskTemplate("daily_note_taker", "Note Taker", "Add a note to a transaction", 5, 1,
                 _count(None, lambda t, limit: bool(t.notes))),
    TaskTemplate("daily_foodie", "Food Tracker", "Log a Food or Dining expense", 10, 1,
                 _count("expense", lambda t, limit: _is_food(t))),
    TaskTemplate("daily_no_spend_morning", "No Spend Morning", "No expenses logged before 12 PM", 15, 1,
                 _no_spend_morning),
    TaskTemplate("daily_saver", "Savings Star", "Log an income transaction", 20, 1,
                 _count("income")),
    TaskTemplate("daily_precise", "Precise Logger", "Log a transaction with exact cents (e.g. 10.50)", 10, 1,
                 _count(None, lambda t, limit: t.amount % 1 != 0)),
    TaskTemplate("daily_big_purchase", "Big Purchase Tracker", "Log an expense over {amount}", 15, 1,
                 _count("expense", lambda t, limit: t.amount > limit), threshold_usd=100),
    TaskTemplate("daily_category_explorer", "Category Explorer", "Log transactions in 2 different categories", 15, 2,
                 _distinct(lambda t: t.category)),
)

WEEKLY_POOL = (
    TaskTemplate("weekly_warrior", "Weekly Warrior", "Log 10 transactions this week", 50, 10,
                 _count()),
    TaskTemplate("weekly_saver", "Super Saver", "Log an income over {amount}", 100, 1,
                 _count("income", lambda t, limit: t.amount > limit), threshold_usd=500),
    TaskTemplate("weekly_variety", "Variety Pack", "Spend in 4 different categories", 75, 4,
                 _distinct(lambda t: t.category, "expense")),
    TaskTemplate("weekly_disciplined", "Disciplined Spender", "Log 5 expenses under {amount}", 60, 5,
                 _count("expense", lambda t, limit: t.amount < limit), threshold_usd=20),
    TaskTemplate("weekly_active", "Active Tracker", "Log transactions on 3 different days", 80, 3,
                 _distinct(tx_day)),
    TaskTemplate("weekly_no_spend_streak", "Mini Streak", "Log 3 income transactions", 100, 1,
                 lambda txs, limit, now: 1 if sum(1 for t in txs if t.type == "income") >= 3 else 0),
    TaskTemplate("weekly_income_boost", "Income Boost", "Log 2 income transactions", 50, 2,
                 _count("income")),
)

MONTHLY_POOL = (
    TaskTemplate("monthly_master", "Monthly Master", "Log 30 transactions this month", 200, 30,
                 _count()),
    TaskTemplate("monthly_category_king", "Category King", "Spend in 6 different categories", 150, 6,
                 _distinct(lambda t: t.category, "expense")),
    TaskTemplate("monthly_big_saver", "Big Saver", "Log total income over {amount}", 300, 2000,
                 _income_sum, threshold_usd=2000, total_is_threshold=True),
    TaskTemplate("monthly_consistent", "Consistent Tracker", "Log transactions on 15 different days", 250, 15,
                 _distinct(tx_day)),
    TaskTemplate("monthly_dedication", "Dedication", "Log 50 expenses", 200, 50,
                 _count("expense")),
)

TASK_POOLS = {
    "daily": DAILY_POOL,
    "weekly": WEEKLY_POOL,
    "monthly": MONTHLY_POOL,
}
