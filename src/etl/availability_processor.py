"""
Availability Processor for employee-month exports.
"""

import pandas as pd
import logging
from typing import Dict, Optional

from ..allocation.consultant_pool import AVAILABILITY_COLUMNS

logger = logging.getLogger(__name__)


class AvailabilityProcessor:
    """Normalize employee availability rows (one per employee per month)."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Availability Processor.

        Args:
            config: Optional column mapping overrides
        """
        self.config = config or {}
        self.column_mapping = {
            'useruuid': 'user_uuid',
            'companyuuid': 'company_uuid',
            'consultanttype': 'consultant_type',
            'consultantType': 'consultant_type',
            'avgSalary': 'avg_salary',
            'avgsalary': 'avg_salary',
            'salary': 'avg_salary',
            **self.config.get('availability', {})
        }

    def process(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean an availability export.

        Accepts either separate ``year``/``month`` columns or a single
        ``date`` column.

        Args:
            df: Raw availability DataFrame

        Returns:
            DataFrame with the availability columns the pool aggregator reads
        """
        logger.info(f"Processing availability data with {len(df)} rows")

        processed_df = df.rename(columns=self.column_mapping).copy()

        if ('year' not in processed_df.columns or 'month' not in processed_df.columns) \
                and 'date' in processed_df.columns:
            dates = pd.to_datetime(processed_df['date'], errors='coerce')
            processed_df['year'] = dates.dt.year
            processed_df['month'] = dates.dt.month

        if 'avg_salary' not in processed_df.columns:
            processed_df['avg_salary'] = 0

        missing = [col for col in AVAILABILITY_COLUMNS if col not in processed_df.columns]
        if missing:
            raise ValueError(f"Missing required availability columns: {missing}")

        processed_df['year'] = pd.to_numeric(processed_df['year'], errors='coerce')
        processed_df['month'] = pd.to_numeric(processed_df['month'], errors='coerce')
        processed_df = processed_df[processed_df['year'].notna() & processed_df['month'].notna()]
        processed_df['year'] = processed_df['year'].astype(int)
        processed_df['month'] = processed_df['month'].astype(int)

        # Records without a company never count towards any pool
        processed_df['company_uuid'] = processed_df['company_uuid'].where(
            processed_df['company_uuid'].notna(), None
        )
        processed_df['status'] = processed_df['status'].astype(str).str.strip().str.upper()
        processed_df['consultant_type'] = processed_df['consultant_type'].astype(str).str.strip().str.upper()
        processed_df['avg_salary'] = pd.to_numeric(processed_df['avg_salary'], errors='coerce').fillna(0)

        logger.info(f"Availability processing complete: {len(processed_df)} rows")
        return processed_df[AVAILABILITY_COLUMNS].reset_index(drop=True)
