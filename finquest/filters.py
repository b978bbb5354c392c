from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Iterable, Iterator

from finquest.domain import Transaction


def tx_day(t: Transaction) -> str:
    return t.date[:10]


def tx_month(t: Transaction) -> str:
    return t.date[:7]


def tx_datetime(t: Transaction) -> datetime:
    # date-only values count as midnight
    return datetime.fromisoformat(t.date[:19])


def by_type(kind: str):
    def _filter(t: Transaction) -> bool:
        return t.type == kind

    return _filter


def by_category(category: str):
    def _filter(t: Transaction) -> bool:
        return t.category.lower() == category.lower()

    return _filter


def by_date_range(start: str, end: str):
    def _filter(t: Transaction) -> bool:
        return start <= tx_day(t) <= end

    return _filter


def by_month(month: str):
    def _filter(t: Transaction) -> bool:
        return tx_month(t) == month

    return _filter


def in_period(kind: str, day: date):
    """Predicate for transactions in the same day, ISO week or month as ``day``."""
    if kind == "daily":
        token = day.isoformat()
        return lambda t: tx_day(t) == token
    if kind == "weekly":
        week = day.isocalendar()[:2]
        return lambda t: date.fromisoformat(tx_day(t)).isocalendar()[:2] == week
    if kind == "monthly":
        return by_month(day.strftime("%Y-%m"))
    raise ValueError(f"unknown period kind: {kind}")


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def total_amount(trans: Iterable[Transaction], kind: str) -> float:
    return sum(t.amount for t in trans if t.type == kind)


def lazy_top_categories(trans: Iterable[Transaction], k: int) -> Iterator[tuple[str, float]]:
    totals: dict[str, float] = defaultdict(float)
    for t in trans:
        if t.type == "expense":
            totals[t.category] += t.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    for name, total in ordered[: max(0, k)]:
        yield name, total
