import logging
from datetime import date
from typing import Iterable, Optional

from finquest.domain import BadgeProgress, Budget, ClaimedTask, GamificationProfile, Transaction
from finquest.filters import by_month, iter_transactions, total_amount
from finquest.functional import Either, Right, failure
from finquest.rewards import BADGES
from finquest.xp import unlock_badge

logger = logging.getLogger(__name__)


def _budget_months_kept(transactions: tuple, budgets: Iterable[Budget], today: date) -> int:
    current = today.strftime("%Y-%m")
    kept = 0
    for b in budgets:
        if b.month >= current or b.total <= 0:
            continue
        spent = total_amount(iter_transactions(transactions, by_month(b.month)), "expense")
        if spent <= b.total:
            kept += 1
    return kept


def _savings_rate(transactions: tuple, today: date) -> float:
    month = tuple(iter_transactions(transactions, by_month(today.strftime("%Y-%m"))))
    income = total_amount(month, "income")
    if income <= 0:
        return 0.0
    return max(0.0, round((income - total_amount(month, "expense")) / income * 100, 1))


def badge_progress(
    badge_id: str,
    transactions: Iterable[Transaction],
    claimed: Iterable[ClaimedTask],
    streak: int,
    budgets: Iterable[Budget] = (),
    today: Optional[date] = None,
) -> BadgeProgress:
    trans = tuple(transactions)
    today = today or date.today()

    if badge_id == "first_steps":
        return BadgeProgress(len(trans), 1, "transactions")
    if badge_id == "tracker_elite":
        return BadgeProgress(len(trans), 100, "transactions")
    if badge_id == "week_warrior":
        return BadgeProgress(streak, 7, "days")
    if badge_id == "month_master":
        return BadgeProgress(streak, 30, "days")
    if badge_id == "saver_pro":
        return BadgeProgress(_savings_rate(trans, today), 20, "%")
    if badge_id == "budget_ninja":
        return BadgeProgress(_budget_months_kept(trans, budgets, today), 1, "months")
    if badge_id == "task_master":
        return BadgeProgress(len(frozenset(claimed)), 25, "tasks")
    return BadgeProgress(0, 1, "")


def claimable_badges(
    profile: GamificationProfile,
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget] = (),
    today: Optional[date] = None,
) -> list[str]:
    trans = tuple(transactions)
    budgets = tuple(budgets)
    return [
        badge_id for badge_id in BADGES
        if badge_id not in profile.badges
        and badge_progress(badge_id, trans, profile.claimed_tasks, profile.streak, budgets, today).is_complete
    ]


def claim_badge(
    profile: GamificationProfile,
    badge_id: str,
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget] = (),
    today: Optional[date] = None,
) -> Either[dict, GamificationProfile]:
    if badge_id not in BADGES:
        return failure("badge_not_found", f"Badge {badge_id} does not exist", badge_id=badge_id)
    if badge_id in profile.badges:
        return failure("already_unlocked", f"Badge {badge_id} is already unlocked", badge_id=badge_id)

    progress = badge_progress(badge_id, transactions, profile.claimed_tasks, profile.streak, budgets, today)
    if not progress.is_complete:
        logger.info("badge %s not yet earned: %s/%s %s", badge_id, progress.current, progress.target, progress.unit)
        return failure(
            "badge_locked",
            f"Badge {BADGES[badge_id].name} needs {progress.target} {progress.unit}",
            badge_id=badge_id,
            current=progress.current,
            target=progress.target,
        )
    return Right(unlock_badge(profile, badge_id))
