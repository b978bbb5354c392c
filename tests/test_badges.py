from datetime import date

from finquest.badges import badge_progress, claim_badge, claimable_badges
from finquest.domain import Budget, ClaimedTask, GamificationProfile, Transaction

TODAY = date(2025, 3, 10)


def make_tx(id, kind, amount, day):
    return Transaction(id=id, type=kind, amount=amount, category="General", date=day)


def test_first_steps_progress():
    progress = badge_progress("first_steps", [make_tx("t1", "expense", 5, "2025-03-01")], set(), 0, today=TODAY)
    assert progress.current == 1
    assert progress.target == 1
    assert progress.is_complete


def test_streak_badges_use_streak():
    assert badge_progress("week_warrior", [], set(), 5, today=TODAY).current == 5
    assert not badge_progress("month_master", [], set(), 29, today=TODAY).is_complete
    assert badge_progress("month_master", [], set(), 30, today=TODAY).is_complete


def test_saver_pro_uses_current_month_savings_rate():
    trans = [
        make_tx("t1", "income", 1000, "2025-03-01"),
        make_tx("t2", "expense", 700, "2025-03-02"),
        make_tx("t3", "expense", 5000, "2025-02-02"),
    ]
    progress = badge_progress("saver_pro", trans, set(), 0, today=TODAY)
    assert progress.current == 30.0
    assert progress.unit == "%"
    assert progress.is_complete


def test_budget_ninja_counts_past_months_within_budget():
    budgets = [
        Budget("b1", "2025-01", 100),
        Budget("b2", "2025-02", 100),
        Budget("b3", "2025-03", 100),
    ]
    trans = [
        make_tx("t1", "expense", 150, "2025-01-10"),
        make_tx("t2", "expense", 80, "2025-02-10"),
    ]
    assert badge_progress("budget_ninja", trans, set(), 0, budgets, TODAY).current == 1


def test_task_master_counts_claims():
    claims = {ClaimedTask("daily_saver", f"2025-02-{d:02d}") for d in range(1, 26)}
    assert badge_progress("task_master", [], claims, 0, today=TODAY).is_complete


def test_claimable_badges():
    profile = GamificationProfile(streak=7, badges=frozenset({"first_steps"}))
    trans = [make_tx("t1", "expense", 5, "2025-03-01")]
    claimable = claimable_badges(profile, trans, today=TODAY)
    assert "week_warrior" in claimable
    assert "first_steps" not in claimable
    assert "month_master" not in claimable


def test_claim_badge():
    trans = [make_tx("t1", "expense", 5, "2025-03-01")]
    result = claim_badge(GamificationProfile(), "first_steps", trans, today=TODAY)
    assert result.is_right()
    profile = result.get_or_else(None)
    assert "first_steps" in profile.badges

    again = claim_badge(profile, "first_steps", trans, today=TODAY)
    assert again.get_error()["error"] == "already_unlocked"


def test_claim_badge_refusals():
    locked = claim_badge(GamificationProfile(), "tracker_elite", [], today=TODAY)
    assert locked.is_left()
    assert locked.get_error()["error"] == "badge_locked"
    assert locked.get_error()["target"] == 100

    missing = claim_badge(GamificationProfile(), "nope", [], today=TODAY)
    assert missing.get_error()["error"] == "badge_not_found"
