"""XP, level, coin and claim bookkeeping for a ``GamificationProfile``.

Every function returns a new profile; persisting it is up to the caller.
Operations the user can be refused (spending coins, claiming a task twice,
redeeming more than the balance) return an ``Either``.
"""
import logging
import math
from dataclasses import replace
from datetime import date, datetime
from functools import lru_cache
from typing import Optional
from uuid import uuid4

from finquest.domain import ClaimedTask, GamificationProfile, HistoryEntry, Redemption
from finquest.functional import Either, Right, failure
from finquest.rewards import (
    BADGES,
    COINS_PER_LEVEL,
    HISTORY_LIMIT,
    REDEMPTION_OPTIONS,
    XP_BASE,
    XP_EXPONENT,
    XP_REWARDS,
)
from finquest.streaks import days_since_check_in

logger = logging.getLogger(__name__)

STREAK_BADGES = {7: "week_warrior", 30: "month_master"}


@lru_cache(maxsize=None)
def xp_threshold(level: int, base: int = XP_BASE) -> int:
    return math.floor(base * level ** XP_EXPONENT)


def _stamp(now: Optional[datetime]) -> str:
    return (now or datetime.now()).isoformat()


def _with_history(profile: GamificationProfile, entry: HistoryEntry) -> tuple:
    return (entry,) + tuple(profile.history)[: HISTORY_LIMIT - 1]


def _roll_levels(profile: GamificationProfile) -> GamificationProfile:
    level, xp, earned = profile.level, profile.xp, 0
    while xp >= xp_threshold(level):
        xp -= xp_threshold(level)
        level += 1
        earned += math.floor(level * COINS_PER_LEVEL)
    if level == profile.level:
        return profile
    logger.info("level up %d -> %d (+%d coins)", profile.level, level, earned)
    return replace(
        profile,
        level=level,
        xp=xp,
        coins=profile.coins + earned,
        total_coins=profile.total_coins + earned,
    )


def add_xp(
    profile: GamificationProfile, amount: int, reason: str, now: Optional[datetime] = None
) -> GamificationProfile:
    if amount < 0:
        return remove_xp(profile, -amount, reason, now)
    updated = replace(
        profile,
        xp=profile.xp + amount,
        total_xp=profile.total_xp + amount,
        history=_with_history(profile, HistoryEntry(_stamp(now), reason, xp_earned=amount)),
    )
    return _roll_levels(updated)


def remove_xp(
    profile: GamificationProfile, amount: int, reason: str, now: Optional[datetime] = None
) -> GamificationProfile:
    # no de-leveling: only the progress inside the current level is lost
    amount = abs(amount)
    return replace(
        profile,
        xp=max(0, profile.xp - amount),
        total_xp=max(0, profile.total_xp - amount),
        history=_with_history(profile, HistoryEntry(_stamp(now), reason, xp_earned=-amount)),
    )


def normalize_profile(profile: GamificationProfile) -> GamificationProfile:
    profile = replace(
        profile,
        level=max(1, profile.level),
        xp=max(0, profile.xp),
        total_xp=max(0, profile.total_xp),
        history=tuple(profile.history)[:HISTORY_LIMIT],
    )
    return _roll_levels(profile)


def add_coins(
    profile: GamificationProfile, amount: int, reason: str, now: Optional[datetime] = None
) -> GamificationProfile:
    return replace(
        profile,
        coins=profile.coins + amount,
        total_coins=profile.total_coins + amount,
        history=_with_history(profile, HistoryEntry(_stamp(now), reason, coins_earned=amount)),
    )


def spend_coins(
    profile: GamificationProfile, amount: int, reason: str, now: Optional[datetime] = None
) -> Either[dict, GamificationProfile]:
    if amount <= 0:
        return failure("invalid_amount", f"Cannot spend {amount} coins", amount=amount)
    if profile.coins < amount:
        logger.warning("refused to spend %d coins, balance is %d", amount, profile.coins)
        return failure(
            "insufficient_coins",
            "Not enough coins!",
            balance=profile.coins,
            required=amount,
        )
    return Right(replace(
        profile,
        coins=profile.coins - amount,
        history=_with_history(profile, HistoryEntry(_stamp(now), reason, coins_spent=amount)),
    ))


def claim_task(
    profile: GamificationProfile,
    claim: ClaimedTask,
    reward: int,
    completed: bool = True,
    now: Optional[datetime] = None,
) -> Either[dict, GamificationProfile]:
    if claim in profile.claimed_tasks:
        logger.warning("task %s already claimed", claim.key)
        return failure("already_claimed", f"Task {claim.task_id} already claimed for {claim.period}",
                       task_id=claim.task_id, period=claim.period)
    if not completed:
        return failure("task_incomplete", f"Task {claim.task_id} is not complete yet",
                       task_id=claim.task_id, period=claim.period)
    claimed = replace(profile, claimed_tasks=profile.claimed_tasks | {claim})
    return Right(add_xp(claimed, reward, f"Task completed: {claim.task_id}", now))


def unlock_badge(profile: GamificationProfile, badge_id: str) -> GamificationProfile:
    if badge_id not in BADGES:
        logger.warning("unknown badge %s", badge_id)
        return profile
    if badge_id in profile.badges:
        return profile
    logger.info("badge unlocked: %s", badge_id)
    return replace(profile, badges=profile.badges | {badge_id})


def daily_check_in(
    profile: GamificationProfile, today: Optional[date] = None, now: Optional[datetime] = None
) -> GamificationProfile:
    today = today or date.today()
    elapsed = days_since_check_in(profile.last_check_in, today)
    if elapsed is not None and elapsed <= 0:
        return profile

    if elapsed == 1:
        streak = profile.streak + 1
        updated = replace(profile, streak=streak, last_check_in=today.isoformat())
        updated = add_xp(updated, XP_REWARDS["DAILY_CHECKIN"], "Daily check-in", now)
        if streak in STREAK_BADGES:
            updated = unlock_badge(updated, STREAK_BADGES[streak])
        return updated

    logger.info("check-in streak reset after %s days", elapsed)
    return replace(profile, streak=1, last_check_in=today.isoformat())


def redeem_coins(
    profile: GamificationProfile,
    value: int,
    upi_id: str,
    now: Optional[datetime] = None,
) -> Either[dict, GamificationProfile]:
    """Exchange coins for a payout request; the request starts out pending."""
    coins = REDEMPTION_OPTIONS.get(value)
    if coins is None:
        return failure("invalid_option", f"No redemption option worth {value}", value=value)
    if not upi_id:
        return failure("missing_payout_id", "A payout id is required to redeem coins")

    def record(spent: GamificationProfile) -> GamificationProfile:
        redemption = Redemption(str(uuid4()), _stamp(now), float(value), coins, upi_id)
        return replace(spent, redemption_history=(redemption,) + tuple(spent.redemption_history))

    return spend_coins(profile, coins, f"Redeemed {value}", now).map(record)
