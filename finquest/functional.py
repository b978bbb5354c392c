from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Optional, TypeVar

from finquest.domain import Badge, SavingsGoal, Subscription, Transaction

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')

TRANSACTION_TYPES = ("income", "expense")


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()

    @staticmethod
    def of(value: Optional[T]) -> 'Maybe[T]':
        return Nothing() if value is None else Some(value)


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Outcome of an operation that may be refused.

    ``Right`` carries the new value, ``Left`` an error dict with at least
    ``error`` and ``message`` keys.
    """

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Right has no error")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def failure(error: str, message: str, **details) -> Left:
    return Left({"error": error, "message": message, **details})


def _find(items: Iterable, item_id: str) -> Maybe:
    return Maybe.of(next((i for i in items if i.id == item_id), None))


def safe_badge(badges: Iterable[Badge], badge_id: str) -> Maybe[Badge]:
    return _find(badges, badge_id)


def safe_goal(goals: Iterable[SavingsGoal], goal_id: str) -> Maybe[SavingsGoal]:
    return _find(goals, goal_id)


def safe_subscription(subs: Iterable[Subscription], sub_id: str) -> Maybe[Subscription]:
    return _find(subs, sub_id)


def validate_transaction(t: Transaction) -> Either[dict, Transaction]:
    if t.type not in TRANSACTION_TYPES:
        return failure(
            "invalid_type",
            f"Transaction type must be income or expense, got {t.type!r}",
            transaction_id=t.id,
        )
    if t.amount <= 0:
        return failure(
            "invalid_amount",
            f"Transaction amount must be positive, got {t.amount}",
            transaction_id=t.id,
            amount=t.amount,
        )
    if len(t.date) < 10:
        return failure("invalid_date", f"Transaction date {t.date!r} is not ISO formatted", transaction_id=t.id)
    return Right(t)
