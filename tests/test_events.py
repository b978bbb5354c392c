from datetime import datetime

from finquest.domain import GamificationProfile, Transaction
from finquest.events import (
    DAILY_CHECKIN,
    TASK_CLAIMED,
    TRANSACTION_ADDED,
    EventBus,
    apply_rewards,
    register_default_handlers,
)

NOW = datetime(2025, 3, 10, 12)


def test_subscribe_publish_unsubscribe():
    bus = EventBus()
    seen = []

    def handler(event, payload):
        seen.append(event.name)
        return {"ok": payload["n"]}

    bus.subscribe("PING", handler)
    assert bus.publish("PING", {"n": 1}) == [{"ok": 1}]
    assert seen == ["PING"]

    bus.unsubscribe("PING", handler)
    assert bus.publish("PING", {"n": 2}) == []
    assert bus.publish("UNKNOWN", {}) == []


def test_first_transaction_rewards():
    bus = register_default_handlers(EventBus())
    t = Transaction("t1", "expense", 20, "Food", "2025-03-10")
    results = bus.publish(TRANSACTION_ADDED, {
        "transaction": t,
        "transaction_count": 1,
        "daily_budget": 50,
        "spent_today": 20,
    })
    profile = apply_rewards(GamificationProfile(), results, NOW)
    # expense 5 + first transaction 20 + under daily budget 10
    assert profile.total_xp == 35
    assert "first_steps" in profile.badges
    assert len(profile.history) == 3


def test_income_and_later_expenses():
    bus = register_default_handlers(EventBus())
    income = Transaction("t1", "income", 1000, "Salary", "2025-03-10")
    profile = apply_rewards(GamificationProfile(), bus.publish(TRANSACTION_ADDED, {
        "transaction": income, "transaction_count": 5, "daily_budget": 50, "spent_today": 0,
    }), NOW)
    assert profile.total_xp == 8

    second = Transaction("t2", "expense", 20, "Food", "2025-03-10")
    profile = apply_rewards(profile, bus.publish(TRANSACTION_ADDED, {
        "transaction": second, "transaction_count": 6, "daily_budget": 50, "spent_today": 45,
    }), NOW)
    assert profile.total_xp == 13


def test_tracker_milestone():
    bus = register_default_handlers(EventBus())
    t = Transaction("t100", "expense", 500, "Rent", "2025-03-10")
    profile = apply_rewards(GamificationProfile(), bus.publish(TRANSACTION_ADDED, {
        "transaction": t, "transaction_count": 100, "daily_budget": 50, "spent_today": 500,
    }), NOW)
    assert "tracker_elite" in profile.badges


def test_streak_bonuses():
    bus = register_default_handlers(EventBus())
    week = apply_rewards(GamificationProfile(), bus.publish(DAILY_CHECKIN, {"streak": 14}), NOW)
    assert week.total_xp == 30
    month = apply_rewards(GamificationProfile(), bus.publish(DAILY_CHECKIN, {"streak": 30}), NOW)
    assert month.total_xp == 200
    plain = apply_rewards(GamificationProfile(), bus.publish(DAILY_CHECKIN, {"streak": 3}), NOW)
    assert plain == GamificationProfile()


def test_task_claim_awards_coins():
    bus = register_default_handlers(EventBus())
    results = bus.publish(TASK_CLAIMED, {"task_id": "daily_saver", "reward": 50})
    profile = apply_rewards(GamificationProfile(), results, NOW)
    assert profile.coins == 10
    assert profile.total_coins == 10
    assert profile.history[0].coins_earned == 10
