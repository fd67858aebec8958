from datetime import date
from decimal import Decimal

from tracker.domain import Category, Transaction, Wallet
from tracker.functional import Left, Nothing, Right, Some, safe_category, validate_transaction

CATS = (
    Category("food", "Food", "expense"),
    Category("salary", "Salary", "income"),
)
WALLETS = (Wallet("w1", "Cash"),)


def make_tx(type_="expense", amount="10", cat="food", wallet="w1"):
    return Transaction("t1", type_, Decimal(amount), date(2025, 1, 1), wallet, cat)


def test_maybe_map_and_default():
    assert Some(5).map(lambda x: x * 2).get_or_else(0) == 10
    nothing = Nothing().map(lambda x: x * 2)
    assert nothing.is_none()
    assert nothing.get_or_else(0) == 0


def test_either_bind_short_circuits():
    def half(x):
        return Left("odd") if x % 2 else Right(x // 2)

    assert Right(8).bind(half).bind(half).get_or_else(None) == 2
    result = Right(6).bind(half).bind(half)
    assert result.is_left()
    assert result.get_error() == "odd"
    assert Left("first").bind(half) == Left("first")


def test_safe_category():
    assert safe_category(CATS, "food") == Some(CATS[0])
    assert safe_category(CATS, "nope").is_none()
    assert safe_category(CATS, None).is_none()


def test_validate_transaction_success():
    result = validate_transaction(make_tx(), CATS, WALLETS)
    assert result.is_right()
    assert result.get_or_else(None).id == "t1"


def test_validate_transaction_errors():
    cases = {
        "negative_amount": make_tx(amount="-1"),
        "invalid_type": make_tx(type_="refund"),
        "category_type_mismatch": make_tx(type_="income"),
        "category_not_found": make_tx(cat="nope"),
        "wallet_not_found": make_tx(wallet="w9"),
        "missing_wallet": make_tx(wallet=""),
    }
    for code, t in cases.items():
        result = validate_transaction(t, CATS, WALLETS)
        assert result.is_left(), code
        assert result.get_error()["error"] == code


def test_validate_transaction_mismatch_message():
    error = validate_transaction(make_tx(type_="income"), CATS).get_error()
    assert "Expense category Food" in error["message"]


def test_unknown_references_allowed_when_not_required():
    t = make_tx(cat="gone", wallet="w9")
    assert validate_transaction(t, CATS, WALLETS, require_known=False).is_right()
    # kind mismatches are never tolerated
    assert validate_transaction(make_tx(type_="income"), CATS, WALLETS, require_known=False).is_left()


def test_empty_directories_skip_lookups():
    assert validate_transaction(make_tx(cat="anything", wallet="anywhere"), (), ()).is_right()
