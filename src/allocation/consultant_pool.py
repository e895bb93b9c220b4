"""
Consultant headcount and salary aggregates per company and month.

The employee-month series is grouped once when the aggregator is built; each
(company, month) snapshot is then computed at most once and cached for the
rest of the report run.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .models import (
    Company, ConsultantCountMode, ConsultantPoolSnapshot, ConsultantType,
    EmployeeMonth, StatusType
)
from .periods import MonthPeriod, month_start

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_STATUSES = (StatusType.TERMINATED, StatusType.NON_PAY_LEAVE)

AVAILABILITY_COLUMNS = [
    'user_uuid', 'company_uuid', 'year', 'month',
    'status', 'consultant_type', 'avg_salary'
]


def employee_months_to_frame(records: Iterable[EmployeeMonth]) -> pd.DataFrame:
    rows = [{
        'user_uuid': r.user_uuid,
        'company_uuid': r.company_uuid,
        'year': r.year,
        'month': r.month,
        'status': StatusType(r.status).value,
        'consultant_type': ConsultantType(r.consultant_type).value,
        'avg_salary': r.avg_salary,
    } for r in records]
    return pd.DataFrame(rows, columns=AVAILABILITY_COLUMNS)


class ConsultantPoolAggregator:
    """
    Computes ``ConsultantPoolSnapshot`` values from an employee-month series.

    A record counts as an active consultant when its consultant type is
    CONSULTANT, its status is not in ``excluded_statuses`` and it belongs to a
    company.

    Modes:
        POINT_IN_TIME: headcount and salary sum of the requested month.
        PERIOD_AVERAGE: headcount and salary sum averaged over every month of
            ``period``; the requested month only selects the company.
    """

    def __init__(self, availability: Union[pd.DataFrame, Sequence[EmployeeMonth]],
                 mode: ConsultantCountMode = ConsultantCountMode.POINT_IN_TIME,
                 period: Optional[MonthPeriod] = None,
                 excluded_statuses: Iterable[Union[StatusType, str]] = DEFAULT_EXCLUDED_STATUSES):
        self.mode = ConsultantCountMode(mode)
        if self.mode == ConsultantCountMode.PERIOD_AVERAGE and period is None:
            raise ValueError("period_average mode requires a period")
        self.period = period
        self.excluded_statuses = {StatusType(s).value for s in excluded_statuses}

        if not isinstance(availability, pd.DataFrame):
            availability = employee_months_to_frame(availability)

        self._monthly = self._group(availability)
        self._cache: Dict[Tuple[str, date], ConsultantPoolSnapshot] = {}

    def _group(self, df: pd.DataFrame) -> Dict[Tuple[str, date], ConsultantPoolSnapshot]:
        if df.empty:
            return {}

        active = df[
            df['company_uuid'].notna() &
            (df['consultant_type'].astype(str).str.upper() == ConsultantType.CONSULTANT.value) &
            (~df['status'].astype(str).str.upper().isin(self.excluded_statuses))
        ].copy()

        if active.empty:
            return {}

        active['avg_salary'] = pd.to_numeric(active['avg_salary'], errors='coerce').fillna(0)
        grouped = active.groupby(['company_uuid', 'year', 'month']).agg(
            consultant_count=('avg_salary', 'size'),
            salary_sum=('avg_salary', 'sum')
        )

        monthly = {}
        for (company_uuid, year, month), row in grouped.iterrows():
            monthly[(company_uuid, date(int(year), int(month), 1))] = ConsultantPoolSnapshot(
                consultant_count=float(row['consultant_count']),
                salary_sum=float(row['salary_sum'])
            )
        logger.debug(f"Grouped availability into {len(monthly)} company-month aggregates")
        return monthly

    def snapshot(self, company: Union[Company, str], month: date) -> ConsultantPoolSnapshot:
        """Return the (cached) snapshot for ``company`` in ``month``."""
        company_uuid = company.uuid if isinstance(company, Company) else company
        key = (company_uuid, month_start(month))

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if self.mode == ConsultantCountMode.POINT_IN_TIME:
            snapshot = self._monthly.get(key, ConsultantPoolSnapshot.empty())
        else:
            snapshot = self._period_average(company_uuid)

        self._cache[key] = snapshot
        return snapshot

    def _period_average(self, company_uuid: str) -> ConsultantPoolSnapshot:
        months = self.period.months()
        if not months:
            return ConsultantPoolSnapshot.empty()
        empty = ConsultantPoolSnapshot.empty()
        counts = np.array([self._monthly.get((company_uuid, m), empty).consultant_count for m in months])
        salaries = np.array([self._monthly.get((company_uuid, m), empty).salary_sum for m in months])
        return ConsultantPoolSnapshot(
            consultant_count=float(counts.mean()),
            salary_sum=float(salaries.mean())
        )

    def snapshots(self, companies: Iterable[Company], month: date) -> List[Tuple[Company, ConsultantPoolSnapshot]]:
        return [(c, self.snapshot(c, month)) for c in companies]

    def ratios(self, companies: Sequence[Company], month: date) -> Dict[str, float]:
        """Each company's share of the total consultant headcount in ``month``."""
        counts = {c.uuid: self.snapshot(c, month).consultant_count for c in companies}
        total = sum(counts.values())
        if total <= 0:
            return {uuid: 0.0 for uuid in counts}
        return {uuid: count / total for uuid, count in counts.items()}

    @property
    def cached_snapshots(self) -> int:
        return len(self._cache)
