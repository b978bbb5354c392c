from finquest.domain import Badge, SavingsGoal, Subscription, Transaction
from finquest.functional import (
    Left,
    Maybe,
    Nothing,
    Right,
    Some,
    failure,
    safe_badge,
    safe_goal,
    safe_subscription,
    validate_transaction,
)


def test_maybe_of():
    assert Maybe.of(None) == Nothing()
    assert Maybe.of(3) == Some(3)
    assert Maybe.of(3).map(lambda x: x + 1).get_or_else(0) == 4
    assert Nothing().map(lambda x: x + 1).get_or_else(0) == 0
    assert Nothing().is_none()


def test_either_map_and_bind():
    assert Right(2).map(lambda x: x * 5) == Right(10)
    assert Right(2).bind(lambda x: Left({"error": "nope"})).is_left()
    left = failure("bad", "went wrong", value=1)
    assert left.map(lambda x: x * 5) is left
    assert left.get_or_else("fallback") == "fallback"
    assert left.get_error() == {"error": "bad", "message": "went wrong", "value": 1}


def test_safe_lookups():
    badges = [Badge("first_steps", "First Steps", "Added your first transaction")]
    assert safe_badge(badges, "first_steps").is_some()
    assert safe_badge(badges, "missing").is_none()

    goals = [SavingsGoal("g1", "Trip", 1000)]
    assert safe_goal(goals, "g1").map(lambda g: g.name).get_or_else("") == "Trip"

    subs = [Subscription("s1", "Music", 9.99, "2025-03-15")]
    assert safe_subscription(subs, "s2") == Nothing()


def test_validate_transaction():
    ok = Transaction("t1", "expense", 12.5, "Food", "2025-03-10")
    assert validate_transaction(ok) == Right(ok)

    wrong_type = Transaction("t2", "transfer", 12.5, "Food", "2025-03-10")
    assert validate_transaction(wrong_type).get_error()["error"] == "invalid_type"

    zero = Transaction("t3", "income", 0, "Salary", "2025-03-10")
    assert validate_transaction(zero).get_error()["error"] == "invalid_amount"

    bad_date = Transaction("t4", "income", 10, "Salary", "03/10")
    assert validate_transaction(bad_date).get_error()["error"] == "invalid_date"
