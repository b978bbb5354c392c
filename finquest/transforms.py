import calendar
import json
import logging
from dataclasses import fields, replace
from datetime import date
from typing import Any, Optional, Tuple
from uuid import uuid4

from finquest.domain import (
    Budget,
    ClaimedTask,
    GamificationProfile,
    HistoryEntry,
    Redemption,
    SavingsGoal,
    Subscription,
    Transaction,
)
from finquest.filters import by_month, iter_transactions, total_amount
from finquest.functional import Either, Right, failure, safe_goal, safe_subscription
from finquest.xp import normalize_profile

logger = logging.getLogger(__name__)

SURPLUS_ACTIONS = ("rollover", "saved", "ignored")

_CAMEL = {
    "paymentMethod": "payment_method",
    "createdAt": "created_at",
    "categoryLimits": "category_limits",
    "surplusAction": "surplus_action",
    "targetAmount": "target_amount",
    "currentAmount": "current_amount",
    "isCompleted": "is_completed",
    "billingDate": "billing_date",
    "reminderDaysBefore": "reminder_days_before",
    "lastPaidDate": "last_paid_date",
    "lastPaymentTransactionId": "last_payment_transaction_id",
    "totalXP": "total_xp",
    "totalCoins": "total_coins",
    "lastCheckIn": "last_check_in",
    "claimedTasks": "claimed_tasks",
    "redemptionHistory": "redemption_history",
    "xpEarned": "xp_earned",
    "coinsEarned": "coins_earned",
    "coinsSpent": "coins_spent",
    "upiId": "upi_id",
}


def _build(cls, raw: dict):
    """Build a dataclass from a record that may use camelCase keys; unknown keys are dropped."""
    names = {f.name for f in fields(cls)}
    data = {_CAMEL.get(k, k): v for k, v in raw.items()}
    return cls(**{k: v for k, v in data.items() if k in names})


def profile_from_dict(raw: Optional[dict]) -> GamificationProfile:
    raw = dict(raw or {})
    claims = tuple(ClaimedTask.parse(key) for key in raw.pop("claimedTasks", raw.pop("claimed_tasks", None)) or ())
    history = raw.pop("history", None) or ()
    redemptions = raw.pop("redemptionHistory", raw.pop("redemption_history", None)) or ()
    base = _build(GamificationProfile, {k: v for k, v in raw.items() if v is not None})
    profile = replace(
        base,
        badges=frozenset(base.badges or ()),
        claimed_tasks=frozenset(c for c in claims if c is not None),
        history=tuple(_build(HistoryEntry, h) for h in history),
        redemption_history=tuple(_build(Redemption, r) for r in redemptions),
    )
    return normalize_profile(profile)


def profile_to_dict(profile: GamificationProfile) -> dict[str, Any]:
    return {
        "level": profile.level,
        "xp": profile.xp,
        "totalXP": profile.total_xp,
        "coins": profile.coins,
        "totalCoins": profile.total_coins,
        "streak": profile.streak,
        "lastCheckIn": profile.last_check_in,
        "badges": sorted(profile.badges),
        "claimedTasks": sorted(c.key for c in profile.claimed_tasks),
        "history": [
            {
                "date": h.date,
                "reason": h.reason,
                "xpEarned": h.xp_earned,
                "coinsEarned": h.coins_earned,
                "coinsSpent": h.coins_spent,
            }
            for h in profile.history
        ],
        "redemptionHistory": [
            {
                "id": r.id,
                "date": r.date,
                "amount": r.amount,
                "coins": r.coins,
                "upiId": r.upi_id,
                "status": r.status,
            }
            for r in profile.redemption_history
        ],
        "createdAt": profile.created_at,
    }


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Transaction, ...],
    Tuple[Budget, ...],
    Tuple[SavingsGoal, ...],
    Tuple[Subscription, ...],
    GamificationProfile,
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = tuple(_build(Transaction, t) for t in data.get("transactions", ()))
    budgets = tuple(_build(Budget, b) for b in data.get("budgets", ()))
    goals = tuple(_build(SavingsGoal, g) for g in data.get("goals", ()))
    subscriptions = tuple(_build(Subscription, s) for s in data.get("subscriptions", ()))
    profile = profile_from_dict(data.get("profile"))
    logger.debug("loaded %d transactions from %s", len(transactions), path)

    return transactions, budgets, goals, subscriptions, profile


# transactions

def add_transaction(trans: Tuple[Transaction, ...], t: Transaction) -> Tuple[Transaction, ...]:
    return trans + (t,)


def delete_transaction(trans: Tuple[Transaction, ...], tx_id: str) -> Tuple[Transaction, ...]:
    return tuple(t for t in trans if t.id != tx_id)


def month_totals(trans: Tuple[Transaction, ...], month: str) -> dict[str, float]:
    in_month = tuple(iter_transactions(trans, by_month(month)))
    return {
        "income": total_amount(in_month, "income"),
        "expense": total_amount(in_month, "expense"),
    }


# budgets

def shift_month(month: str, n: int) -> str:
    year, mon = map(int, month.split("-"))
    index = year * 12 + (mon - 1) + n
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def find_budget(budgets: Tuple[Budget, ...], month: str) -> Optional[Budget]:
    return next((b for b in budgets if b.month == month), None)


def ensure_budget(
    budgets: Tuple[Budget, ...], month: str, total: float = 0.0, category_limits: Optional[dict] = None
) -> Tuple[Budget, ...]:
    if find_budget(budgets, month) is not None:
        return budgets
    budget = Budget(id=str(uuid4()), month=month, total=total, category_limits=dict(category_limits or {}))
    return budgets + (budget,)


def update_budget(budgets: Tuple[Budget, ...], month: str, **changes) -> Tuple[Budget, ...]:
    return tuple(replace(b, **changes) if b.month == month else b for b in budgets)


def budget_for_transaction(budgets: Tuple[Budget, ...], t: Transaction) -> Tuple[Budget, ...]:
    """Keep the transaction's month budgeted.

    The first transaction of a month creates the budget at its own amount
    (an expense also caps its category at that amount). Every later income
    raises the month's total by the amount received.
    """
    month = t.date[:7]
    existing = find_budget(budgets, month)
    if existing is None:
        limits = {t.category: t.amount} if t.type == "expense" else {}
        logger.info("budget for %s created from %s of %.2f", month, t.type, t.amount)
        return ensure_budget(budgets, month, t.amount, limits)
    if t.type == "income":
        return update_budget(budgets, month, total=existing.total + t.amount)
    return budgets


def budget_surplus(budget: Budget, trans: Tuple[Transaction, ...]) -> float:
    return budget.total - month_totals(trans, budget.month)["expense"]


def settle_surplus(
    budgets: Tuple[Budget, ...],
    trans: Tuple[Transaction, ...],
    month: str,
    action: str,
) -> Either[dict, Tuple[Tuple[Budget, ...], float]]:
    """Record the once-per-month decision about a budget's unspent funds.

    Returns the new budgets and the amount that should move into savings
    (non-zero only for ``saved``). A month without surplus is locked as
    ``ignored`` whatever the requested action.
    """
    if action not in SURPLUS_ACTIONS:
        return failure("invalid_action", f"Unknown surplus action {action!r}", action=action)
    budget = find_budget(budgets, month)
    if budget is None:
        return failure("budget_not_found", f"No budget for {month}", month=month)
    if budget.surplus_action is not None:
        return failure(
            "decision_locked",
            f"Surplus for {month} already settled as {budget.surplus_action}",
            month=month,
            surplus_action=budget.surplus_action,
        )

    surplus = budget_surplus(budget, trans)
    if surplus <= 0:
        action = "ignored"
    logger.info("surplus for %s settled as %s (%.2f)", month, action, max(surplus, 0))
    updated = update_budget(budgets, month, surplus_action=action)

    if action == "rollover":
        next_month = shift_month(month, 1)
        updated = ensure_budget(updated, next_month)
        carried = find_budget(updated, next_month)
        updated = update_budget(updated, next_month, total=carried.total + surplus)
        return Right((updated, 0.0))
    if action == "saved":
        return Right((updated, surplus))
    return Right((updated, 0.0))


# savings goals

def remaining_to_target(goal: SavingsGoal) -> float:
    return max(0.0, goal.target_amount - goal.current_amount)


def allocate_savings(
    goals: Tuple[SavingsGoal, ...], goal_id: str, amount: float
) -> Either[dict, Tuple[SavingsGoal, ...]]:
    if amount <= 0:
        return failure("invalid_amount", f"Allocation must be positive, got {amount}", amount=amount)
    goal = safe_goal(goals, goal_id).get_or_else(None)
    if goal is None:
        return failure("goal_not_found", f"Savings goal {goal_id} does not exist", goal_id=goal_id)
    remaining = remaining_to_target(goal)
    if amount > remaining:
        return failure(
            "exceeds_target",
            f"{goal.name} only needs {remaining:,.2f} more",
            goal_id=goal_id,
            amount=amount,
            remaining=remaining,
        )
    return Right(tuple(
        replace(g, current_amount=g.current_amount + amount) if g.id == goal_id else g
        for g in goals
    ))


def fill_goals(goals: Tuple[SavingsGoal, ...], amount: float) -> Tuple[Tuple[SavingsGoal, ...], float]:
    """Spread ``amount`` over open goals in order; returns the goals and what is left over."""
    filled = []
    for g in goals:
        share = min(amount, remaining_to_target(g)) if not g.is_completed else 0.0
        if share > 0:
            g = replace(g, current_amount=g.current_amount + share)
            amount -= share
        filled.append(g)
    return tuple(filled), amount


def toggle_goal_completion(goals: Tuple[SavingsGoal, ...], goal_id: str) -> Tuple[SavingsGoal, ...]:
    return tuple(replace(g, is_completed=not g.is_completed) if g.id == goal_id else g for g in goals)


def update_goal_target(goals: Tuple[SavingsGoal, ...], goal_id: str, target: float) -> Tuple[SavingsGoal, ...]:
    def retarget(g: SavingsGoal) -> SavingsGoal:
        return replace(
            g,
            target_amount=target,
            current_amount=min(g.current_amount, target),
            is_completed=False if target > g.current_amount else g.is_completed,
        )

    return tuple(retarget(g) if g.id == goal_id else g for g in goals)


# subscriptions

def shift_date(day: str, interval: str, n: int) -> str:
    d = date.fromisoformat(day[:10])
    months = n if interval == "monthly" else 12 * n
    index = d.year * 12 + (d.month - 1) + months
    year, month = index // 12, index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day)).isoformat()


def mark_subscription_paid(
    subs: Tuple[Subscription, ...], sub_id: str, transaction_id: str, paid_on: Optional[date] = None
) -> Either[dict, Tuple[Subscription, ...]]:
    sub = safe_subscription(subs, sub_id).get_or_else(None)
    if sub is None:
        return failure("subscription_not_found", f"Subscription {sub_id} does not exist", subscription_id=sub_id)
    if sub.is_paid:
        return failure("already_paid", f"{sub.title} is already marked as paid", subscription_id=sub_id)
    paid = replace(
        sub,
        last_paid_date=(paid_on or date.today()).isoformat(),
        last_payment_transaction_id=transaction_id,
        billing_date=shift_date(sub.billing_date, sub.interval, 1),
    )
    return Right(tuple(paid if s.id == sub_id else s for s in subs))


def undo_subscription_payment(
    subs: Tuple[Subscription, ...], trans: Tuple[Transaction, ...], sub_id: str
) -> Either[dict, Tuple[Tuple[Subscription, ...], Tuple[Transaction, ...]]]:
    sub = safe_subscription(subs, sub_id).get_or_else(None)
    if sub is None:
        return failure("subscription_not_found", f"Subscription {sub_id} does not exist", subscription_id=sub_id)
    if not sub.is_paid:
        return failure("not_paid", f"{sub.title} has no payment to undo", subscription_id=sub_id)
    reverted = replace(
        sub,
        last_paid_date=None,
        last_payment_transaction_id=None,
        billing_date=shift_date(sub.billing_date, sub.interval, -1),
    )
    return Right((
        tuple(reverted if s.id == sub_id else s for s in subs),
        delete_transaction(trans, sub.last_payment_transaction_id),
    ))
