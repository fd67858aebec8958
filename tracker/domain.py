from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

WARNING = "warning"
DANGER = "danger"

MONTHLY_TARGET = "monthly_target"
CATEGORY_LIMIT = "category_limit"


@dataclass(frozen=True)
class Wallet:
    id: str
    name: str
    icon: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    kind: str            # "income" or "expense"
    icon: str = ""


@dataclass(frozen=True)
class Transaction:
    id: str
    type: str                    # "income" or "expense"
    amount: Decimal              # never negative, direction comes from type
    date: date
    wallet_id: str
    category_id: Optional[str] = None
    note: str = ""
    created_seq: int = 0         # ledger insertion order


@dataclass(frozen=True)
class DailySummary:
    date: date
    transactions: tuple[Transaction, ...]
    income: Decimal
    expense: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class WalletBalance:
    wallet_id: str
    balance: Decimal


# A spending limit for one expense category, per month
@dataclass(frozen=True)
class CategoryLimit:
    category_id: str
    limit: Optional[Decimal]


@dataclass(frozen=True)
class AlertThresholdConfig:
    monthly_target_enabled: bool = False
    monthly_target: Optional[Decimal] = None
    category_limits_enabled: bool = False
    category_limits: tuple[CategoryLimit, ...] = ()


@dataclass(frozen=True)
class Alert:
    severity: str        # "warning" or "danger"
    title: str
    description: str
    source: str = MONTHLY_TARGET
    category_id: Optional[str] = None
    ratio_percent: int = 0


@dataclass(frozen=True)
class ViewSelection:
    month: date                      # always the first day of the month
    day: Optional[date] = None
    wallet_id: Optional[str] = None


@dataclass(frozen=True)
class Aggregates:
    selection: ViewSelection
    daily_summaries: tuple[DailySummary, ...]
    monthly_summary: MonthlySummary
    wallet_balances: Mapping[str, WalletBalance]
    month_transactions: tuple[Transaction, ...] = ()

    @property
    def total_balance(self) -> Decimal:
        return sum((wb.balance for wb in self.wallet_balances.values()), Decimal("0"))

    @property
    def selected_balance(self) -> Decimal:
        wallet_id = self.selection.wallet_id
        if wallet_id is None:
            return self.total_balance
        wb = self.wallet_balances.get(wallet_id)
        return wb.balance if wb is not None else Decimal("0")


@dataclass(frozen=True)
class Dashboard:
    aggregates: Aggregates
    alerts: tuple[Alert, ...] = field(default_factory=tuple)
