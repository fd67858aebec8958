from datetime import date
from decimal import Decimal

from tracker.alerts import category_expense, category_label, check_threshold, evaluate_alerts
from tracker.domain import (
    CATEGORY_LIMIT, DANGER, MONTHLY_TARGET, WARNING, AlertThresholdConfig, Category, CategoryLimit,
    Transaction,
)

D = Decimal

CATS = (
    Category("food", "Food", "expense", "🍜"),
    Category("travel", "Travel", "expense"),
    Category("salary", "Salary", "income"),
)


def make_tx(id, type_, amount, cat_id=None, day=10):
    return Transaction(id=id, type=type_, amount=D(amount), date=date(2024, 5, day),
                       wallet_id="w1", category_id=cat_id)


def target_config(target):
    return AlertThresholdConfig(monthly_target_enabled=True, monthly_target=D(target))


def limits_config(*limits):
    return AlertThresholdConfig(
        category_limits_enabled=True,
        category_limits=tuple(CategoryLimit(cid, None if lim is None else D(lim)) for cid, lim in limits),
    )


def test_threshold_below_ninety_percent_is_silent():
    assert check_threshold(D("899.99"), D("1000")) is None
    assert check_threshold(D("100"), D("1000")) is None


def test_threshold_boundaries():
    warn = check_threshold(D("900"), D("1000"))
    assert warn.severity == WARNING
    assert warn.description == "900 / 1,000 (90%)"

    at_limit = check_threshold(D("1000"), D("1000"))
    assert at_limit.severity == DANGER
    assert at_limit.description == "1,000 / 1,000 (100%)"

    over = check_threshold(D("1500"), D("1000"))
    assert over.severity == DANGER
    assert over.description == "1,500 / 1,000 (150%)"
    assert over.ratio_percent == 150


def test_threshold_just_under_limit_stays_warning_even_if_rounded_to_100():
    check = check_threshold(D("999.5"), D("1000"))
    assert check.severity == WARNING
    assert check.description == "999.5 / 1,000 (100%)"


def test_threshold_skips_zero_spend_and_unusable_limits():
    assert check_threshold(D("0"), D("1000")) is None
    assert check_threshold(D("500"), None) is None
    assert check_threshold(D("500"), D("0")) is None
    assert check_threshold(D("500"), D("-100")) is None


def test_monthly_target_alert_titles():
    [danger] = evaluate_alerts(D("1200"), target_config("1000"), (), CATS)
    assert danger.source == MONTHLY_TARGET
    assert danger.title == "Monthly expenses exceeded target"

    [warn] = evaluate_alerts(D("950"), target_config("1000"), (), CATS)
    assert warn.title == "Monthly expenses approaching target"


def test_disabled_thresholds_produce_nothing():
    config = AlertThresholdConfig(
        monthly_target_enabled=False,
        monthly_target=D("10"),
        category_limits_enabled=False,
        category_limits=(CategoryLimit("food", D("10")),),
    )
    trans = (make_tx("t1", "expense", "500", "food"),)
    assert evaluate_alerts(D("500"), config, trans, CATS) == []


def test_category_limits_follow_configured_order():
    trans = (
        make_tx("t1", "expense", "95", "food"),      # 95% of 100
        make_tx("t2", "expense", "3000", "travel"),  # 300% of 1000
    )
    alerts = evaluate_alerts(D("3095"), limits_config(("food", "100"), ("travel", "1000")), trans, CATS)
    assert [a.category_id for a in alerts] == ["food", "travel"]
    assert alerts[0].severity == WARNING
    assert alerts[1].severity == DANGER

    reversed_order = evaluate_alerts(D("3095"), limits_config(("travel", "1000"), ("food", "100")), trans, CATS)
    assert [a.category_id for a in reversed_order] == ["travel", "food"]


def test_monthly_alert_comes_before_category_alerts():
    config = AlertThresholdConfig(
        monthly_target_enabled=True,
        monthly_target=D("100"),
        category_limits_enabled=True,
        category_limits=(CategoryLimit("food", D("50")),),
    )
    trans = (make_tx("t1", "expense", "200", "food"),)
    alerts = evaluate_alerts(D("200"), config, trans, CATS)
    assert [a.source for a in alerts] == [MONTHLY_TARGET, CATEGORY_LIMIT]


def test_category_title_uses_icon_and_name():
    trans = (make_tx("t1", "expense", "120", "food"),)
    [alert] = evaluate_alerts(D("120"), limits_config(("food", "100")), trans, CATS)
    assert alert.title == "🍜 Food exceeded limit"
    assert alert.description == "120 / 100 (120%)"


def test_unknown_category_falls_back_to_generic_label():
    trans = (make_tx("t1", "expense", "100", "ghost"),)
    [alert] = evaluate_alerts(D("100"), limits_config(("ghost", "100")), trans, CATS)
    assert alert.title == "Category exceeded limit"
    assert category_label((), "ghost") == "Category"
    assert category_label(CATS, "travel") == "Travel"


def test_limit_on_income_category_uses_generic_label():
    trans = (make_tx("t1", "expense", "150", "salary"),)
    [alert] = evaluate_alerts(D("150"), limits_config(("salary", "100")), trans, CATS)
    assert alert.title == "Category exceeded limit"
    assert alert.category_id == "salary"
    assert category_label(CATS, "salary") == "Category"


def test_category_sums_only_matching_expenses():
    trans = (
        make_tx("t1", "expense", "40", "food"),
        make_tx("t2", "expense", "60", "food"),
        make_tx("t3", "expense", "500", None),
        make_tx("t4", "income", "1000", "salary"),
        make_tx("t5", "expense", "70", "travel"),
    )
    assert category_expense(trans, "food") == D("100")
    assert category_expense(trans, "salary") == D("0")


def test_category_without_spending_is_skipped():
    trans = (make_tx("t1", "expense", "40", "travel"),)
    assert evaluate_alerts(D("40"), limits_config(("food", "10")), trans, CATS) == []


def test_category_limit_that_is_missing_or_negative_is_skipped():
    trans = (make_tx("t1", "expense", "40", "food"), make_tx("t2", "expense", "40", "travel"))
    alerts = evaluate_alerts(D("80"), limits_config(("food", None), ("travel", "-5")), trans, CATS)
    assert alerts == []
