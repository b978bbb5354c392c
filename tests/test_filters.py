from datetime import date

import pytest

from finquest.domain import Transaction
from finquest.filters import (
    by_category,
    by_date_range,
    by_type,
    in_period,
    iter_transactions,
    lazy_top_categories,
    total_amount,
)


def make_tx(id, kind, amount, cat, day):
    return Transaction(id=id, type=kind, amount=amount, category=cat, date=day)


TRANS = (
    make_tx("t1", "expense", 40, "Food", "2025-03-09"),
    make_tx("t2", "expense", 25, "food", "2025-03-10T08:15:00"),
    make_tx("t3", "income", 900, "Salary", "2025-03-10"),
    make_tx("t4", "expense", 120, "Rent", "2025-03-16"),
    make_tx("t5", "expense", 60, "Transport", "2025-04-01"),
)


def ids(trans):
    return [t.id for t in trans]


def test_type_and_category_filters():
    assert ids(iter_transactions(TRANS, by_type("income"))) == ["t3"]
    assert ids(iter_transactions(TRANS, by_category("FOOD"))) == ["t1", "t2"]


def test_date_range_uses_day_part():
    assert ids(iter_transactions(TRANS, by_date_range("2025-03-10", "2025-03-16"))) == ["t2", "t3", "t4"]


def test_in_period():
    day = date(2025, 3, 10)
    assert ids(iter_transactions(TRANS, in_period("daily", day))) == ["t2", "t3"]
    # ISO week 11 runs Monday 10th to Sunday 16th
    assert ids(iter_transactions(TRANS, in_period("weekly", day))) == ["t2", "t3", "t4"]
    assert ids(iter_transactions(TRANS, in_period("monthly", day))) == ["t1", "t2", "t3", "t4"]
    with pytest.raises(ValueError):
        in_period("yearly", day)


def test_totals_and_top_categories():
    assert total_amount(TRANS, "income") == 900
    assert total_amount(TRANS, "expense") == 245
    assert list(lazy_top_categories(TRANS, 2)) == [("Rent", 120), ("Transport", 60)]
    assert list(lazy_top_categories(TRANS, 0)) == []
