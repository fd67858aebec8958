"""
Threshold alerts for the monthly spending target and category limits.

Both kinds of threshold share one rule: with ``ratio = actual / limit``,
``ratio >= 1`` is *danger*, ``0.9 <= ratio < 1`` is *warning*, anything
lower produces nothing. Zero spending and missing or non-positive limits
are skipped outright.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional

from tracker.domain import (
    CATEGORY_LIMIT, DANGER, EXPENSE, MONTHLY_TARGET, WARNING, Alert, AlertThresholdConfig,
    Category, Transaction,
)
from tracker.filters import by_category, by_type, iter_transactions
from tracker.functional import safe_category
from tracker.money import ZERO, format_amount, percent, total

logger = logging.getLogger(__name__)

WARNING_RATIO = Decimal("0.9")
FALLBACK_CATEGORY_LABEL = "Category"


class ThresholdCheck(NamedTuple):
    severity: str
    ratio_percent: int
    description: str


def check_threshold(actual: Decimal, limit: Optional[Decimal]) -> Optional[ThresholdCheck]:
    if actual <= ZERO:
        return None
    if limit is None or limit <= ZERO:
        logger.debug(f"Skipping threshold with unusable limit {limit!r}")
        return None

    ratio = actual / limit
    if ratio >= 1:
        severity = DANGER
    elif ratio >= WARNING_RATIO:
        severity = WARNING
    else:
        return None

    pct = percent(ratio)
    return ThresholdCheck(
        severity=severity,
        ratio_percent=pct,
        description=f"{format_amount(actual)} / {format_amount(limit)} ({pct}%)",
    )


def category_label(categories: Iterable[Category], category_id: str) -> str:
    # expense categories only
    return (
        safe_category((c for c in categories if c.kind == EXPENSE), category_id)
        .map(lambda c: f"{c.icon} {c.name}".strip())
        .get_or_else(FALLBACK_CATEGORY_LABEL)
    )


def category_expense(month_trans: Iterable[Transaction], category_id: str) -> Decimal:
    return total(t.amount for t in iter_transactions(month_trans, by_type(EXPENSE), by_category(category_id)))


def evaluate_alerts(
    monthly_expense: Decimal,
    config: AlertThresholdConfig,
    month_trans: Iterable[Transaction],
    categories: Iterable[Category] = (),
) -> List[Alert]:
    """Alerts for the active month: the monthly target first, then category
    limits in their configured order."""
    alerts: List[Alert] = []

    if config.monthly_target_enabled:
        check = check_threshold(monthly_expense, config.monthly_target)
        if check is not None:
            title = "Monthly expenses exceeded target" if check.severity == DANGER \
                else "Monthly expenses approaching target"
            alerts.append(Alert(
                severity=check.severity,
                title=title,
                description=check.description,
                source=MONTHLY_TARGET,
                ratio_percent=check.ratio_percent,
            ))

    if config.category_limits_enabled and config.category_limits:
        month_trans = tuple(month_trans)
        categories = tuple(categories)
        for cl in config.category_limits:
            check = check_threshold(category_expense(month_trans, cl.category_id), cl.limit)
            if check is None:
                continue
            label = category_label(categories, cl.category_id)
            suffix = "exceeded limit" if check.severity == DANGER else "approaching limit"
            alerts.append(Alert(
                severity=check.severity,
                title=f"{label} {suffix}",
                description=check.description,
                source=CATEGORY_LIMIT,
                category_id=cl.category_id,
                ratio_percent=check.ratio_percent,
            ))

    return alerts
