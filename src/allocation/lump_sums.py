"""
Manually registered lump-sum corrections, keyed by account and month.
"""

import logging
from datetime import date
from typing import Dict, Iterable, Optional, Tuple, Union

import pandas as pd

from .models import AccountingAccount, LumpSumCorrection
from .periods import MonthPeriod, month_start

logger = logging.getLogger(__name__)


class LumpSumResolver:
    """
    Read-only lookup of lump sums for (account, month).

    Corrections registered on any day of a month count for that month and are
    summed. Amounts are used as recorded; a negative correction is not clamped.
    """

    def __init__(self, corrections: Union[pd.DataFrame, Iterable[LumpSumCorrection]] = (),
                 period: Optional[MonthPeriod] = None):
        if isinstance(corrections, pd.DataFrame):
            corrections = self._from_frame(corrections)

        self._sums: Dict[Tuple[str, date], float] = {}
        skipped = 0
        for correction in corrections:
            month = month_start(correction.registered_date)
            if period is not None and month not in period:
                skipped += 1
                continue
            key = (correction.account_uuid, month)
            self._sums[key] = self._sums.get(key, 0.0) + float(correction.amount)

        if skipped:
            logger.debug(f"Ignored {skipped} lump sums outside {period}")

    @staticmethod
    def _from_frame(df: pd.DataFrame) -> Iterable[LumpSumCorrection]:
        if df.empty:
            return []
        dates = pd.to_datetime(df['registered_date'])
        amounts = pd.to_numeric(df['amount'], errors='coerce').fillna(0)
        return [
            LumpSumCorrection(account_uuid=str(uuid), registered_date=ts.date(), amount=float(amount))
            for uuid, ts, amount in zip(df['account_uuid'], dates, amounts)
        ]

    def lump_sum(self, account: Union[AccountingAccount, str], month: date) -> float:
        account_uuid = account.uuid if isinstance(account, AccountingAccount) else account
        return self._sums.get((account_uuid, month_start(month)), 0.0)

    def __len__(self) -> int:
        return len(self._sums)
