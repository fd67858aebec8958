from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Optional, TypeVar

from tracker.domain import EXPENSE, INCOME, TRANSACTION_TYPES, Category, Transaction, Wallet
from tracker.money import to_amount

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


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
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

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

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

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


def safe_category(cats: Iterable[Category], cat_id: Optional[str]) -> Maybe[Category]:
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def _check_shape(t: Transaction) -> Either[dict, Transaction]:
    if t.type not in TRANSACTION_TYPES:
        return Left({
            "error": "invalid_type",
            "message": f"Transaction type must be '{INCOME}' or '{EXPENSE}', got {t.type!r}",
            "type": t.type,
        })
    try:
        amount = to_amount(t.amount)
    except ValueError as e:
        return Left({"error": "invalid_amount", "message": str(e), "amount": t.amount})
    if amount < 0:
        return Left({
            "error": "negative_amount",
            "message": f"Amount cannot be negative: {amount}",
            "amount": amount,
        })
    if not t.wallet_id:
        return Left({"error": "missing_wallet", "message": "Transaction must belong to a wallet"})
    return Right(t)


def validate_transaction(
    t: Transaction,
    cats: tuple[Category, ...],
    wallets: tuple[Wallet, ...] = (),
    require_known: bool = True,
) -> Either[dict, Transaction]:
    """Check a transaction against the ledger rules.

    Amount, type and category kind are always checked. Unknown category or
    wallet ids are only rejected with ``require_known``; a lookup directory
    that is empty is never consulted.
    """

    def check_wallet(t: Transaction) -> Either[dict, Transaction]:
        if require_known and wallets and not any(w.id == t.wallet_id for w in wallets):
            return Left({
                "error": "wallet_not_found",
                "message": f"Wallet with ID {t.wallet_id} does not exist",
                "wallet_id": t.wallet_id,
            })
        return Right(t)

    def check_category(t: Transaction) -> Either[dict, Transaction]:
        if t.category_id is None:
            return Right(t)
        found = safe_category(cats, t.category_id)
        if found.is_none():
            if require_known and cats:
                return Left({
                    "error": "category_not_found",
                    "message": f"Category with ID {t.category_id} does not exist",
                    "category_id": t.category_id,
                })
            return Right(t)
        category = found.get_or_else(None)
        if category.kind != t.type:
            return Left({
                "error": "category_type_mismatch",
                "message": f"{category.kind.capitalize()} category {category.name} cannot hold {t.type} transactions",
                "category_kind": category.kind,
                "type": t.type,
            })
        return Right(t)

    return _check_shape(t).bind(check_wallet).bind(check_category)
