import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from finquest.domain import GamificationProfile
from finquest.rewards import XP_REWARDS
from finquest.xp import add_coins, add_xp, unlock_badge

__all__ = [
    'event_bus', 'TRANSACTION_ADDED', 'TASK_CLAIMED', 'DAILY_CHECKIN',
    'Event', 'EventBus', 'apply_rewards', 'register_default_handlers',
]

logger = logging.getLogger(__name__)

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TASK_CLAIMED = "TASK_CLAIMED"
DAILY_CHECKIN = "DAILY_CHECKIN"

TRACKER_MILESTONE = 100


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name, [])
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        logger.debug("publishing %s to %d handlers", name, len(handlers))
        return [handler(event, payload) for handler in handlers]


def transaction_xp_handler(event: Event, payload: dict) -> dict:
    t = payload.get("transaction")
    if t is None:
        return {}
    if t.type == "income":
        return {"xp": XP_REWARDS["ADD_INCOME"], "reason": "Added income"}
    return {"xp": XP_REWARDS["ADD_EXPENSE"], "reason": "Added expense"}


def milestone_handler(event: Event, payload: dict) -> dict:
    count = payload.get("transaction_count", 0)
    if count == 1:
        return {"xp": XP_REWARDS["FIRST_TRANSACTION"], "reason": "First transaction", "badge": "first_steps"}
    if count == TRACKER_MILESTONE:
        return {"badge": "tracker_elite"}
    return {}


def daily_budget_handler(event: Event, payload: dict) -> dict:
    t = payload.get("transaction")
    daily_budget = payload.get("daily_budget", 0)
    spent_today = payload.get("spent_today", 0)
    if t is None or t.type != "expense" or daily_budget <= 0:
        return {}
    # rewarded once, on the first expense of the day that keeps the day in budget
    if spent_today == t.amount and spent_today <= daily_budget:
        return {"xp": XP_REWARDS["UNDER_DAILY_BUDGET"], "reason": "Under daily budget"}
    return {}


def streak_bonus_handler(event: Event, payload: dict) -> dict:
    streak = payload.get("streak", 0)
    if streak and streak % 30 == 0:
        return {"xp": XP_REWARDS["MONTH_STREAK"], "reason": f"{streak}-day streak"}
    if streak and streak % 7 == 0:
        return {"xp": XP_REWARDS["WEEK_STREAK"], "reason": f"{streak}-day streak"}
    return {}


def task_coins_handler(event: Event, payload: dict) -> dict:
    reward = payload.get("reward", 0)
    if reward <= 0:
        return {}
    return {"coins": reward // 5, "reason": f"Task reward: {payload.get('task_id', '')}"}


def apply_rewards(
    profile: GamificationProfile, results: Iterable[dict], now: Optional[datetime] = None
) -> GamificationProfile:
    """Fold handler results into the profile."""
    for result in results:
        if result.get("xp"):
            profile = add_xp(profile, result["xp"], result.get("reason", ""), now)
        if result.get("coins"):
            profile = add_coins(profile, result["coins"], result.get("reason", ""), now)
        if result.get("badge"):
            profile = unlock_badge(profile, result["badge"])
    return profile


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(TRANSACTION_ADDED, transaction_xp_handler)
    bus.subscribe(TRANSACTION_ADDED, milestone_handler)
    bus.subscribe(TRANSACTION_ADDED, daily_budget_handler)
    bus.subscribe(DAILY_CHECKIN, streak_bonus_handler)
    bus.subscribe(TASK_CLAIMED, task_coins_handler)
    return bus


event_bus = register_default_handlers(EventBus())
