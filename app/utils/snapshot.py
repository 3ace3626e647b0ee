from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from app.utils.dates import month_key, month_label, next_month_key, previous_month_key, to_datetime

Record = Mapping[str, Any]


@dataclass
class MonthlySummary:
    """Income and expense totals for one calendar month."""

    month: str
    label: str
    income: float
    expenses: float
    net: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthTotals:
    """Income, expenses and net cash flow for a single month of the snapshot."""

    income: float = 0.0
    expenses: float = 0.0
    net_cash_flow: float = 0.0


@dataclass
class CategorySpending:
    """Current-month spend in one category and its change from last month."""

    category: str
    amount: float
    change: float


@dataclass
class AllocationEntry:
    """Total value held in one asset type and its share of net worth."""

    asset_type: str
    value: float
    percentage: float


@dataclass
class AssetPerformance:
    asset_id: Optional[str]
    asset_name: str
    asset_type: str
    invested_amount: float
    current_value: float
    gain_loss: float
    gain_loss_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Trends:
    expense_growth_streak: int = 0


@dataclass
class FinancialSnapshot:
    """Aggregated view of a user's finances, as handed to the insight generator."""

    current_month: MonthTotals
    previous_month: MonthTotals
    spending_by_category: List[CategorySpending]
    portfolio_allocation: List[AllocationEntry]
    trends: Trends
    net_worth: float = 0.0
    generated_for: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _amount(record: Record, key: str = "amount") -> float:
    try:
        return float(record.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def fill_month_gaps(series: Iterable[MonthlySummary]) -> List[MonthlySummary]:
    """
    Return a contiguous copy of a sparse monthly series, inserting zero
    entries for months between the first and last present month.
    """
    by_month = {item.month: item for item in series}
    if not by_month:
        return []

    months = sorted(by_month)
    filled: List[MonthlySummary] = []
    key = months[0]
    while key <= months[-1]:
        filled.append(
            by_month.get(key)
            or MonthlySummary(month=key, label=month_label(key), income=0.0, expenses=0.0, net=0.0)
        )
        key = next_month_key(key)
    return filled


class SnapshotEngine:
    """
    Pure aggregation over a user's transactions and assets.

    Records are plain mappings as returned by the storage layer. Nothing is
    cached between calls; ``clock`` supplies "now" so the current month can
    be pinned in tests.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def net_worth(self, assets: Iterable[Record]) -> float:
        return sum((_amount(asset, "current_value") for asset in assets), 0.0)

    def current_month_summary(self, transactions: Iterable[Record]) -> Dict[str, float]:
        now = self.now()
        start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        income = 0.0
        expenses = 0.0
        for tx in transactions:
            when = to_datetime(tx.get("date"))
            if when is None or not start_of_month <= when <= now:
                continue
            if tx.get("type") == "income":
                income += _amount(tx)
            elif tx.get("type") == "expense":
                expenses += _amount(tx)

        income = round(income, 2)
        expenses = round(expenses, 2)
        return {
            "income": income,
            "expenses": expenses,
            "profit_loss": round(income - expenses, 2),
        }

    def _month_buckets(self, transactions: Iterable[Record]) -> Dict[str, Dict[str, float]]:
        buckets: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expense": 0.0})
        for tx in transactions:
            tx_type = tx.get("type")
            if tx_type not in ("income", "expense"):
                continue
            when = to_datetime(tx.get("date"))
            if when is None:
                continue
            buckets[month_key(when)][tx_type] += _amount(tx)
        return buckets

    def monthly_performance(self, transactions: Iterable[Record]) -> List[MonthlySummary]:
        """
        One entry per month that has income or expense activity, oldest
        first. Months without activity are absent, not zero-filled.
        """
        buckets = self._month_buckets(transactions)
        series = []
        for key in sorted(buckets):
            income = round(buckets[key]["income"], 2)
            expenses = round(buckets[key]["expense"], 2)
            series.append(
                MonthlySummary(
                    month=key,
                    label=month_label(key),
                    income=income,
                    expenses=expenses,
                    net=round(income - expenses, 2),
                )
            )
        return series

    def portfolio_allocation(self, assets: Iterable[Record]) -> List[Dict[str, Any]]:
        by_type: Dict[str, float] = {}
        for asset in assets:
            asset_type = asset.get("asset_type") or "Other"
            by_type[asset_type] = by_type.get(asset_type, 0.0) + _amount(asset, "current_value")
        return [{"name": name, "value": value} for name, value in by_type.items()]

    def asset_performance(self, assets: Iterable[Record]) -> List[AssetPerformance]:
        results = []
        for asset in assets:
            invested = _amount(asset, "invested_amount")
            current = _amount(asset, "current_value")
            gain_loss = current - invested
            results.append(
                AssetPerformance(
                    asset_id=asset.get("asset_id"),
                    asset_name=asset.get("asset_name", ""),
                    asset_type=asset.get("asset_type") or "Other",
                    invested_amount=round(invested, 2),
                    current_value=round(current, 2),
                    gain_loss=round(gain_loss, 2),
                    gain_loss_percent=0.0 if invested == 0 else gain_loss / invested,
                )
            )
        return results

    def _category_totals(self, transactions: Iterable[Record], key: str) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for tx in transactions:
            if tx.get("type") != "expense":
                continue
            when = to_datetime(tx.get("date"))
            if when is None or month_key(when) != key:
                continue
            totals[tx.get("category") or "Uncategorized"] += _amount(tx)
        return totals

    def spending_by_category(
        self,
        transactions: List[Record],
        current_key: str,
        previous_key: str,
    ) -> List[CategorySpending]:
        current = self._category_totals(transactions, current_key)
        previous = self._category_totals(transactions, previous_key)

        spending = []
        for category, amount in current.items():
            if amount <= 0:
                continue
            before = previous.get(category, 0.0)
            # Spend in a category that had none last month is reported as +100%
            change = (amount - before) / before if before > 0 else 1.0
            spending.append(CategorySpending(category=category, amount=round(amount, 2), change=change))

        spending.sort(key=lambda item: (-item.amount, item.category))
        return spending

    @staticmethod
    def expense_growth_streak(series: List[MonthlySummary]) -> int:
        """
        Length of the run of months, ending at the latest month present, in
        which each month's expenses strictly exceed the previous entry's.
        """
        if not series or series[-1].expenses <= 0:
            return 0

        streak = 1
        for newer, older in zip(reversed(series), reversed(series[:-1])):
            if newer.expenses > older.expenses:
                streak += 1
            else:
                break
        return streak

    def create_financial_snapshot(
        self,
        transactions: Iterable[Record],
        assets: Iterable[Record],
    ) -> FinancialSnapshot:
        transactions = list(transactions)
        assets = list(assets)

        current_key = month_key(self.now())
        previous_key = previous_month_key(current_key)

        series = self.monthly_performance(transactions)
        by_month = {item.month: item for item in series}

        def totals_for(key: str) -> MonthTotals:
            bucket = by_month.get(key)
            if bucket is None:
                return MonthTotals()
            return MonthTotals(income=bucket.income, expenses=bucket.expenses, net_cash_flow=bucket.net)

        total_value = self.net_worth(assets)
        allocation = [
            AllocationEntry(
                asset_type=entry["name"],
                value=entry["value"],
                percentage=entry["value"] / total_value if total_value > 0 else 0.0,
            )
            for entry in self.portfolio_allocation(assets)
        ]

        return FinancialSnapshot(
            current_month=totals_for(current_key),
            previous_month=totals_for(previous_key),
            spending_by_category=self.spending_by_category(transactions, current_key, previous_key),
            portfolio_allocation=allocation,
            trends=Trends(expense_growth_streak=self.expense_growth_streak(series)),
            net_worth=total_value,
            generated_for=current_key,
        )
