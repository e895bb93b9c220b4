"""
In-memory index over finance ledger entries.
"""

import logging
from datetime import date
from typing import Dict, Iterable, Optional, Tuple, Union

import pandas as pd

from .models import LedgerEntry
from .periods import MonthPeriod, month_start

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ['company_uuid', 'account_code', 'expense_date', 'amount']


def ledger_entries_to_frame(entries: Iterable[LedgerEntry]) -> pd.DataFrame:
    rows = [{
        'company_uuid': e.company_uuid,
        'account_code': e.account_code,
        'expense_date': e.expense_date,
        'amount': e.amount,
    } for e in entries]
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


class LedgerIndex:
    """
    Ledger sums grouped once by (company, account code, month).

    Built from a bulk read of the report window; every later lookup is a
    dictionary hit. Missing combinations sum to 0.
    """

    def __init__(self, entries: Union[pd.DataFrame, Iterable[LedgerEntry]],
                 period: Optional[MonthPeriod] = None):
        df = entries if isinstance(entries, pd.DataFrame) else ledger_entries_to_frame(entries)
        self.entry_count = len(df)
        self._sums = self._group(df, period)
        logger.info(f"Indexed {self.entry_count} ledger entries into {len(self._sums)} account-months")

    @staticmethod
    def _group(df: pd.DataFrame, period: Optional[MonthPeriod]) -> Dict[Tuple[str, int, date], float]:
        if df.empty:
            return {}

        work = pd.DataFrame({
            'company_uuid': df['company_uuid'].astype(str),
            'account_code': pd.to_numeric(df['account_code'], errors='coerce'),
            'expense_date': pd.to_datetime(df['expense_date']),
            'amount': pd.to_numeric(df['amount'], errors='coerce').fillna(0),
        })
        work = work[work['account_code'].notna()]
        work['account_code'] = work['account_code'].astype(int)
        work['month'] = work['expense_date'].dt.to_period('M').dt.to_timestamp()

        if period is not None:
            lower = pd.Timestamp(period.from_date)
            upper = pd.Timestamp(period.to_date)
            work = work[(work['expense_date'] >= lower) & (work['expense_date'] < upper)]

        grouped = work.groupby(['company_uuid', 'account_code', 'month'])['amount'].sum()
        return {
            (company_uuid, int(account_code), month.date()): float(amount)
            for (company_uuid, account_code, month), amount in grouped.items()
        }

    def sum_by_account_and_month(self, company_uuid: str, account_code: int, month: date) -> float:
        return self._sums.get((company_uuid, int(account_code), month_start(month)), 0.0)

    def account_months(self) -> Iterable[Tuple[str, int, date]]:
        return self._sums.keys()
