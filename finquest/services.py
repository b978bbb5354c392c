import calendar
import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from finquest.domain import Budget, Transaction
from finquest.filters import by_month, iter_transactions, total_amount
from finquest.metrics import (
    calculate_burn_rate,
    calculate_consistency_score,
    calculate_discipline_score,
    calculate_financial_health_score,
    calculate_growth_rate,
    health_label,
)
from finquest.streaks import savings_streak_months
from finquest.transforms import find_budget, shift_month

logger = logging.getLogger(__name__)

Calculator = Callable[[Dict[str, Any], Dict[str, Any]], Dict[str, Any]]


def month_context(
    transactions: Iterable[Transaction], budgets: Iterable[Budget], today: Optional[date] = None
) -> Dict[str, Any]:
    """Aggregate the current month's numbers the calculators work from."""
    today = today or date.today()
    trans = tuple(transactions)
    month = today.strftime("%Y-%m")
    current = tuple(iter_transactions(trans, by_month(month)))
    previous = tuple(iter_transactions(trans, by_month(shift_month(month, -1))))

    budget = find_budget(tuple(budgets), month)
    total_budget = budget.total if budget is not None else 0.0
    days_in_month = calendar.monthrange(today.year, today.month)[1]

    return {
        "month": month,
        "today": today,
        "transactions": current,
        "income": total_amount(current, "income"),
        "expenses": total_amount(current, "expense"),
        "last_expenses": total_amount(previous, "expense"),
        "total_budget": total_budget,
        "daily_budget": total_budget / days_in_month if total_budget > 0 else 0.0,
        "savings_streak": savings_streak_months(trans, today),
    }


def health(ctx, acc):
    score = calculate_financial_health_score(ctx["income"], ctx["expenses"], ctx["total_budget"], ctx["expenses"])
    return {"health_score": score, "health_label": health_label(score)}


def discipline(ctx, acc):
    return {"discipline_score": calculate_discipline_score(ctx["transactions"], ctx["daily_budget"])}


def consistency(ctx, acc):
    return {"consistency_score": calculate_consistency_score(ctx["savings_streak"], ctx["income"], ctx["expenses"])}


def burn_rate(ctx, acc):
    return {"burn_rate": calculate_burn_rate(ctx["expenses"], ctx["total_budget"], ctx["today"])}


def growth(ctx, acc):
    return {"expense_growth": calculate_growth_rate(ctx["expenses"], ctx["last_expenses"])}


def insights(ctx, acc):
    income, expenses = ctx["income"], ctx["expenses"]
    if income == 0 and expenses == 0:
        return {"insights": [
            "No financial data available for this month yet.",
            "Start adding income and expenses to see your financial analysis.",
        ]}

    notes = []
    label = acc.get("health_label")
    if label:
        notes.append(f"Financial health is {label.lower()} ({acc['health_score']}/100).")

    if income > 0:
        rate = (income - expenses) / income * 100
        if rate >= 20:
            notes.append(f"You are saving {round(rate)}% of your income, above the recommended 20%.")
        elif rate > 0:
            notes.append(f"You are saving {round(rate)}%. Aim for 20% by trimming non-essential expenses.")
        else:
            notes.append(f"Deficit warning: you spent {round(abs(rate))}% more than you earned this month.")
    else:
        notes.append("No income recorded. Cannot calculate savings rate accurately.")

    change = acc.get("expense_growth", 0.0)
    if abs(change) < 5:
        notes.append("Your spending is stable compared to last month.")
    elif change > 10:
        notes.append(f"Spending alert: expenses are up {round(change)}% on last month.")
    elif change < -10:
        notes.append(f"Great progress: expenses are down {round(abs(change))}% on last month.")

    rate = acc.get("burn_rate")
    if rate is not None and ctx["total_budget"] > 0 and rate.is_over_budget:
        notes.append(f"At this pace the budget runs out in {rate.days_until_exhaustion} days.")
    return {"insights": notes}


def default_calculators() -> list[Calculator]:
    return [health, discipline, consistency, burn_rate, growth, insights]


class AnalysisService:
    """Facade that runs injected calculators over a month context.

    calculators: sequence of functions taking (context, accumulated) -> dict (partial results)
    """

    def __init__(self, calculators: Optional[Sequence[Calculator]] = None):
        self.calculators = list(calculators) if calculators is not None else default_calculators()

    def monthly_report(self, ctx: Dict[str, Any]) -> Dict[str, Any]:
        """Run calculators in order and return the merged result with intermediate steps."""
        report = {"month": ctx.get("month"), "steps": [], "result": {}}

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            name = getattr(calc, "__name__", str(calc))
            try:
                out = calc(ctx, acc)
            except (KeyError, TypeError, ValueError, ZeroDivisionError) as e:
                logger.error("calculator %s failed: %s", name, e)
                out = {"error": f"{name}: {e}"}
            report["steps"].append({"calculator": name, "output": out})
            if isinstance(out, dict):
                acc.update({k: v for k, v in out.items() if k != "error"})

        report["result"] = acc
        return report

    def analyze(
        self, transactions: Iterable[Transaction], budgets: Iterable[Budget], today: Optional[date] = None
    ) -> Dict[str, Any]:
        return self.monthly_report(month_context(transactions, budgets, today))
