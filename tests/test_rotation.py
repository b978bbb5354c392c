from datetime import date, datetime, timedelta

from finquest.domain import ClaimedTask, Transaction
from finquest.rewards import DAILY_POOL, MONTHLY_POOL, clean_denomination, currency_amount
from finquest.rotation import (
    get_daily_tasks,
    get_monthly_tasks,
    get_weekly_tasks,
    period_seed,
    seeded_random,
    shuffle,
    task_board,
    week_token,
)

DAY = date(2025, 3, 10)


def ids(tasks):
    return [t.id for t in tasks]


def test_task_counts():
    assert len(get_daily_tasks(DAY, "USD")) == 5
    assert len(get_weekly_tasks(DAY, "USD")) == 4
    assert len(get_monthly_tasks(DAY, "USD")) == 3


def test_daily_tasks_start_with_log_expense():
    for offset in range(10):
        tasks = get_daily_tasks(DAY + timedelta(days=offset), "USD")
        assert tasks[0].id == "daily_log_expense"
        assert len(set(ids(tasks))) == 5


def test_same_period_gives_same_tasks():
    assert ids(get_daily_tasks(DAY, "USD")) == ids(get_daily_tasks(DAY, "USD"))
    assert ids(get_weekly_tasks(DAY, "EUR")) == ids(get_weekly_tasks(DAY + timedelta(days=3), "EUR"))
    assert ids(get_monthly_tasks(DAY, "INR")) == ids(get_monthly_tasks(date(2025, 3, 28), "INR"))


def test_rotation_changes_across_days():
    orderings = {tuple(ids(get_daily_tasks(DAY + timedelta(days=n), "USD"))) for n in range(14)}
    assert len(orderings) > 1


def test_seeded_random_range_and_determinism():
    values = [seeded_random(seed) for seed in range(2025000, 2025400)]
    assert all(0 <= v < 1 for v in values)
    assert seeded_random(2025069) == seeded_random(2025069)


def test_shuffle_is_a_permutation():
    items = list(range(9))
    shuffled = shuffle(items, 42)
    assert sorted(shuffled) == items
    assert items == list(range(9))
    assert shuffle(items, 42) == shuffled


def test_period_seeds_and_tokens():
    assert period_seed("daily", DAY) == 2025069
    assert period_seed("weekly", DAY) == 202511
    assert period_seed("monthly", DAY) == 202502
    assert period_seed("monthly", date(2025, 1, 31)) == 202500
    assert week_token(DAY) == "2025-W11"
    assert week_token(date(2024, 12, 30)) == "2025-W01"


def test_currency_thresholds_are_rounded():
    assert clean_denomination(46) == 45
    assert clean_denomination(2) == 5
    assert clean_denomination(740) == 750
    assert clean_denomination(4150) == 4200
    assert currency_amount(50, "USD") == 50
    assert currency_amount(50, "INR") == 4200
    assert currency_amount(50, "XYZ") == 50


def test_task_description_uses_currency():
    smart_spender = next(t for t in DAILY_POOL if t.id == "daily_smart_spender")
    assert smart_spender.build("USD").description == "Log an expense under $50"
    assert smart_spender.build("INR").description == "Log an expense under ₹4,200"
    assert smart_spender.build("EUR").description == "Log an expense under €45"


def test_money_total_follows_currency():
    big_saver = next(t for t in MONTHLY_POOL if t.id == "monthly_big_saver")
    assert big_saver.build("USD").total == 2000
    assert big_saver.build("GBP").total == 1600


def test_threshold_progress_uses_converted_limit():
    smart_spender = next(t for t in DAILY_POOL if t.id == "daily_smart_spender").build("INR")
    txs = [
        Transaction("t1", "expense", 3000, "Food", "2025-03-10"),
        Transaction("t2", "expense", 5000, "Food", "2025-03-10"),
    ]
    assert smart_spender.check_progress(txs) == 1


def test_no_spend_morning():
    task = next(t for t in DAILY_POOL if t.id == "daily_no_spend_morning").build("USD")
    morning = [Transaction("t1", "expense", 5, "Food", "2025-03-10T09:00:00")]
    afternoon = [Transaction("t2", "expense", 5, "Food", "2025-03-10T13:00:00")]
    assert task.check_progress(morning, datetime(2025, 3, 10, 15)) == 0
    assert task.check_progress(afternoon, datetime(2025, 3, 10, 15)) == 1
    assert task.check_progress([], datetime(2025, 3, 10, 10)) == 0


def test_task_board_progress_and_claims():
    txs = (
        Transaction("t1", "expense", 12.5, "Food", "2025-03-10"),
        Transaction("t2", "expense", 30, "Transport", "2025-03-10"),
        Transaction("t3", "expense", 99, "Food", "2025-03-09"),
    )
    claimed = {ClaimedTask("daily_log_expense", "2025-03-10")}
    board = task_board("daily", DAY, "USD", txs, claimed, datetime(2025, 3, 10, 18))

    log_expense = board[0]
    assert log_expense.task.id == "daily_log_expense"
    assert log_expense.claim.key == "daily_log_expense_2025-03-10"
    assert log_expense.progress == 1  # clamped to total
    assert log_expense.is_complete
    assert log_expense.is_claimed
    assert not log_expense.is_claimable
    assert all(status.claim.period == "2025-03-10" for status in board)


def test_monthly_rotation_for_march():
    assert ids(get_monthly_tasks(DAY, "USD")) == ["monthly_dedication", "monthly_master", "monthly_consistent"]
    assert ids(get_monthly_tasks(DAY)) == ids(shuffle(MONTHLY_POOL, 202502)[:3])


def test_weekly_rotation_keeps_task_ids():
    assert ids(get_weekly_tasks(DAY, "USD")) == [
        "weekly_saver", "weekly_disciplined", "weekly_no_spend_streak", "weekly_variety",
    ]


def test_task_board_weekly_uses_iso_week():
    txs = (
        Transaction("t1", "expense", 10, "Food", "2025-03-10"),
        Transaction("t2", "expense", 10, "Transport", "2025-03-16"),
        Transaction("t3", "expense", 10, "Rent", "2025-03-09"),
        Transaction("t4", "expense", 10, "Bills", "2025-03-17"),
    )
    board = task_board("weekly", DAY, "USD", txs, set())
    assert all(status.claim.period == "2025-W11" for status in board)
    by_id = {status.task.id: status for status in board}
    # only the Monday 10th and Sunday 16th expenses fall in week 11
    assert by_id["weekly_variety"].progress == 2
    assert by_id["weekly_disciplined"].progress == 2
