"""
Ledger Processor for finance-detail and lump-sum exports.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class LedgerProcessor:
    """Normalize finance-detail (GL) rows and lump-sum corrections."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Ledger Processor.

        Args:
            config: Optional column mapping overrides
        """
        self.config = config or {}
        self.ledger_mapping = {
            'companyuuid': 'company_uuid',
            'CompanyUUID': 'company_uuid',
            'accountnumber': 'account_code',
            'Account Number': 'account_code',
            'expensedate': 'expense_date',
            'Expense Date': 'expense_date',
            'Amount': 'amount',
            **self.config.get('ledger', {})
        }
        self.lump_sum_mapping = {
            'accountuuid': 'account_uuid',
            'accountinguuid': 'account_uuid',
            'registereddate': 'registered_date',
            'registeredDate': 'registered_date',
            'Amount': 'amount',
            **self.config.get('lump_sums', {})
        }
        self.required_ledger_columns = ['company_uuid', 'account_code', 'expense_date', 'amount']
        self.required_lump_sum_columns = ['account_uuid', 'registered_date', 'amount']

    def process_ledger(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean a finance-detail export.

        Args:
            df: Raw ledger DataFrame

        Returns:
            DataFrame with company_uuid, account_code, expense_date, amount
        """
        logger.info(f"Processing ledger data with {len(df)} rows")

        processed_df = df.rename(columns=self.ledger_mapping).copy()
        self._require(processed_df, self.required_ledger_columns, 'ledger')

        has_company = processed_df['company_uuid'].notna()
        processed_df['company_uuid'] = processed_df['company_uuid'].astype(str).str.strip()
        processed_df['account_code'] = pd.to_numeric(processed_df['account_code'], errors='coerce')
        processed_df['expense_date'] = pd.to_datetime(processed_df['expense_date'], errors='coerce')
        processed_df['amount'] = pd.to_numeric(processed_df['amount'], errors='coerce').fillna(0)

        # Rows without an account or date cannot be placed in any month
        initial_rows = len(processed_df)
        processed_df = processed_df[
            processed_df['account_code'].notna() &
            processed_df['expense_date'].notna() &
            has_company &
            (processed_df['company_uuid'] != '')
        ]
        dropped = initial_rows - len(processed_df)
        if dropped:
            logger.warning(f"Dropped {dropped} ledger rows without company, account or date")

        processed_df['account_code'] = processed_df['account_code'].astype(int)
        credits = int((processed_df['amount'] < 0).sum())
        logger.info(f"Ledger processing complete: {len(processed_df)} rows ({credits} credits)")

        return processed_df[self.required_ledger_columns].reset_index(drop=True)

    def process_lump_sums(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean a lump-sum export.

        Args:
            df: Raw lump-sum DataFrame

        Returns:
            DataFrame with account_uuid, registered_date, amount
        """
        logger.info(f"Processing lump sums with {len(df)} rows")

        processed_df = df.rename(columns=self.lump_sum_mapping).copy()
        self._require(processed_df, self.required_lump_sum_columns, 'lump sums')

        processed_df['account_uuid'] = processed_df['account_uuid'].astype(str).str.strip()
        processed_df['registered_date'] = pd.to_datetime(processed_df['registered_date'], errors='coerce')
        processed_df['amount'] = pd.to_numeric(processed_df['amount'], errors='coerce')

        processed_df = processed_df[
            processed_df['registered_date'].notna() & processed_df['amount'].notna()
        ]
        processed_df['amount'] = processed_df['amount'].astype(np.float64)

        logger.info(f"Lump sum processing complete: {len(processed_df)} rows")
        return processed_df[self.required_lump_sum_columns].reset_index(drop=True)

    @staticmethod
    def _require(df: pd.DataFrame, columns: List[str], label: str):
        missing = [col for col in columns if col not in df.columns]
        if missing:
            raise ValueError(f"Missing required {label} columns: {missing}")
