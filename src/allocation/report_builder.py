"""
Assembles allocation results into the supported report shapes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

import pandas as pd

from .allocation_engine import AccountAllocationEngine, PoolContext
from .consultant_pool import DEFAULT_EXCLUDED_STATUSES, ConsultantPoolAggregator
from .ledger import LedgerIndex
from .lump_sums import LumpSumResolver
from .models import (
    AccountingCategory, AllocationResult, CategoryTotals, Company,
    ConsultantCountMode, EmployeeMonth, OutputMode
)
from .periods import MonthPeriod
from .registry import ChartOfAccounts, CompanyRegistry

logger = logging.getLogger(__name__)


class Granularity(str, Enum):
    MONTH = 'month'
    PERIOD = 'period'


@dataclass(frozen=True)
class CategoryLedger:
    category: AccountingCategory
    primary_sum: float
    secondary_sum: float
    accounts: Tuple[AllocationResult, ...]

    @property
    def loan(self) -> float:
        return sum(r.loan for r in self.accounts)

    @property
    def debt(self) -> float:
        return sum(r.debt for r in self.accounts)


@dataclass(frozen=True)
class MonthLedger:
    month: date
    categories: Tuple[CategoryLedger, ...]
    consultants_total: float = 0.0

    @property
    def total_loan(self) -> float:
        return sum(c.loan for c in self.categories)

    @property
    def total_debt(self) -> float:
        return sum(c.debt for c in self.categories)

    @property
    def net_position(self) -> float:
        return self.total_debt - self.total_loan


@dataclass(frozen=True)
class LedgerReport:
    primary: Company
    period: MonthPeriod
    months: Tuple[MonthLedger, ...] = ()

    def month(self, month: date) -> MonthLedger:
        for entry in self.months:
            if entry.month == month:
                return entry
        raise KeyError(month)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for month_ledger in self.months:
            for category_ledger in month_ledger.categories:
                for result in category_ledger.accounts:
                    rows.append({
                        'month': month_ledger.month,
                        'category_code': category_ledger.category.account_code,
                        'category_name': category_ledger.category.name,
                        **_account_columns(result),
                        'raw_sum': result.raw_sum,
                        'lump_sum': result.lump_sum,
                        'shareable': result.shareable,
                        'loan': result.loan,
                        'debt': result.debt,
                    })
        return pd.DataFrame(rows, columns=LEDGER_FRAME_COLUMNS)


@dataclass(frozen=True)
class CategoryTotalsReport:
    primary: Company
    period: MonthPeriod
    granularity: Granularity
    totals: Dict[date, Tuple[CategoryTotals, ...]] = field(default_factory=dict)

    def for_period(self) -> Tuple[CategoryTotals, ...]:
        """Totals for the whole window; only valid at period granularity."""
        if self.granularity != Granularity.PERIOD:
            raise ValueError("Report was built per month")
        return self.totals.get(self.period.from_date, ())

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for bucket, category_totals in self.totals.items():
            for totals in category_totals:
                rows.append({
                    'bucket': bucket,
                    'category_code': totals.category.account_code,
                    'category_name': totals.category.name,
                    'primary_sum': totals.primary_sum,
                    'secondary_sum': totals.secondary_sum,
                    'adjusted_primary_sum': totals.adjusted_primary_sum,
                    'adjusted_secondary_sum': totals.adjusted_secondary_sum,
                })
        return pd.DataFrame(rows, columns=TOTALS_FRAME_COLUMNS)


LEDGER_FRAME_COLUMNS = [
    'month', 'category_code', 'category_name', 'account_uuid', 'company_uuid',
    'account_code', 'description', 'shared', 'salary',
    'raw_sum', 'lump_sum', 'shareable', 'loan', 'debt'
]

TOTALS_FRAME_COLUMNS = [
    'bucket', 'category_code', 'category_name', 'primary_sum', 'secondary_sum',
    'adjusted_primary_sum', 'adjusted_secondary_sum'
]


def _account_columns(result: AllocationResult) -> Dict:
    account = result.account
    return {
        'account_uuid': account.uuid,
        'company_uuid': account.company_uuid,
        'account_code': account.account_code,
        'description': account.description,
        'shared': account.shared,
        'salary': account.salary,
    }


class AllocationReportBuilder:
    """
    Walks categories x accounts x months and folds engine results into reports.

    The builder owns no mutable totals: every report call builds a fresh pool
    aggregator for its window, evaluates each account-month once and sums the
    immutable results.
    """

    def __init__(self, chart: ChartOfAccounts, companies: CompanyRegistry,
                 ledger: LedgerIndex, lump_sums: LumpSumResolver,
                 availability: Union[pd.DataFrame, Iterable[EmployeeMonth]],
                 config: Optional[Dict] = None):
        self.chart = chart
        self.companies = companies
        self.ledger = ledger
        self.lump_sums = lump_sums
        self.availability = availability
        self.config = config or {}
        self.count_mode = ConsultantCountMode(
            self.config.get('consultant_count_mode', ConsultantCountMode.POINT_IN_TIME.value)
        )
        self.excluded_statuses = self.config.get('excluded_statuses', DEFAULT_EXCLUDED_STATUSES)

    def _engine(self, period: MonthPeriod) -> AccountAllocationEngine:
        pool = ConsultantPoolAggregator(
            self.availability,
            mode=self.count_mode,
            period=period,
            excluded_statuses=self.excluded_statuses
        )
        return AccountAllocationEngine(self.ledger, self.lump_sums, pool, self.config)

    def _contexts(self, engine: AccountAllocationEngine, primary: Company,
                  period: MonthPeriod) -> Iterable[PoolContext]:
        secondaries = self.companies.secondaries_of(primary)
        for month in period:
            context = engine.pool_context(primary, secondaries, month)
            if context.total_consultants <= 0:
                logger.warning(f"No consultants across companies in {month:%Y-%m}; shared accounts allocate 0")
            yield context

    def _in_pool(self, company_uuid: str, context: PoolContext) -> bool:
        return context.snapshot_of(company_uuid) is not None

    def ledger_report(self, primary_uuid: str, period: MonthPeriod) -> LedgerReport:
        """Date-indexed raw sums, loans and debts for ``primary_uuid``."""
        primary = self.companies.find_company(primary_uuid)
        engine = self._engine(period)
        logger.info(f"Building ledger report for {primary.name} over {period}")

        months = []
        for context in self._contexts(engine, primary, period):
            categories = []
            for category in self.chart.list_categories():
                results = []
                primary_sum = secondary_sum = 0.0
                for account in category.accounts:
                    if not self._in_pool(account.company_uuid, context):
                        continue
                    result = engine.evaluate(account, category, context, OutputMode.LEDGER)
                    results.append(result)
                    if context.is_primary(account.company_uuid):
                        primary_sum += result.raw_sum
                    elif account.shared:
                        secondary_sum += result.raw_sum
                categories.append(CategoryLedger(category, primary_sum, secondary_sum, tuple(results)))
            months.append(MonthLedger(context.month, tuple(categories), context.total_consultants))
            logger.debug(f"Processed month {context.month:%Y-%m} for company {primary.uuid}")

        logger.info(f"Ledger report for {primary.name} complete: {len(months)} months")
        return LedgerReport(primary, period, tuple(months))

    def category_totals(self, primary_uuid: str, period: MonthPeriod,
                        granularity: Union[Granularity, str] = Granularity.PERIOD) -> CategoryTotalsReport:
        """Per-category raw and adjusted sums, for the whole window or per month."""
        primary = self.companies.find_company(primary_uuid)
        granularity = Granularity(granularity)
        engine = self._engine(period)
        logger.info(f"Building category totals for {primary.name} over {period} ({granularity.value})")

        buckets: Dict[date, Dict[str, CategoryTotals]] = {}
        for context in self._contexts(engine, primary, period):
            bucket = context.month if granularity == Granularity.MONTH else period.from_date
            running = buckets.setdefault(bucket, {})
            for category in self.chart.list_categories():
                monthly = self._category_month(engine, category, context)
                previous = running.get(category.uuid)
                running[category.uuid] = monthly if previous is None else _combine(previous, monthly)

        totals = {bucket: tuple(values.values()) for bucket, values in buckets.items()}
        return CategoryTotalsReport(primary, period, granularity, totals)

    def _category_month(self, engine: AccountAllocationEngine, category: AccountingCategory,
                        context: PoolContext) -> CategoryTotals:
        results = []
        primary_sum = secondary_sum = adjusted_primary = adjusted_secondary = 0.0
        for account in category.accounts:
            if context.is_primary(account.company_uuid):
                result = engine.evaluate(account, category, context, OutputMode.ADJUSTED_SUM)
                primary_sum += result.raw_sum
                adjusted_primary += result.adjusted_sum
            elif account.shared and self._in_pool(account.company_uuid, context):
                result = engine.evaluate(account, category, context, OutputMode.ADJUSTED_SUM)
                secondary_sum += result.raw_sum
                adjusted_secondary += result.adjusted_sum
            else:
                continue
            results.append(result)
        return CategoryTotals(
            category=category,
            primary_sum=primary_sum,
            secondary_sum=secondary_sum,
            adjusted_primary_sum=adjusted_primary,
            adjusted_secondary_sum=adjusted_secondary,
            accounts=tuple(results)
        )

    def period_total(self, primary_uuid: str, period: MonthPeriod,
                     category_uuid: Optional[str] = None) -> float:
        """
        The primary's adjusted cost over ``period``, for one category or all.

        Pool snapshots are taken once per month of the window and shared by
        every account evaluated in that month.
        """
        primary = self.companies.find_company(primary_uuid)
        if category_uuid is not None:
            categories = [self.chart.find_category(category_uuid)]
        else:
            categories = self.chart.list_categories()
        engine = self._engine(period)

        total = 0.0
        for context in self._contexts(engine, primary, period):
            for category in categories:
                total += self._category_month(engine, category, context).adjusted_total
        logger.info(f"Period total for {primary.name} over {period}: {total:.2f}")
        return total


def _combine(left: CategoryTotals, right: CategoryTotals) -> CategoryTotals:
    return CategoryTotals(
        category=left.category,
        primary_sum=left.primary_sum + right.primary_sum,
        secondary_sum=left.secondary_sum + right.secondary_sum,
        adjusted_primary_sum=left.adjusted_primary_sum + right.adjusted_primary_sum,
        adjusted_secondary_sum=left.adjusted_secondary_sum + right.adjusted_secondary_sum,
        accounts=left.accounts + right.accounts
    )
