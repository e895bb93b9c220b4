"""
Chart Processor for company, category and account exports.
Builds the read-only company registry and chart of accounts.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, List, Optional

from ..allocation.models import AccountingAccount, AccountingCategory, Company
from ..allocation.registry import ChartOfAccounts, CompanyRegistry

logger = logging.getLogger(__name__)

TRUE_VALUES = {'1', 'TRUE', 'T', 'YES', 'Y', 'X'}


def parse_flag(value) -> bool:
    """Interpret spreadsheet-style boolean cells."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return False
    return str(value).strip().upper() in TRUE_VALUES


class ChartProcessor:
    """Turn company/category/account tables into domain objects."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Chart Processor.

        Args:
            config: Optional column mapping overrides
        """
        self.config = config or {}
        self.column_mapping = {
            'companyuuid': 'company_uuid',
            'categoryuuid': 'category_uuid',
            'accountcode': 'account_code',
            'account_description': 'description',
            'accountname': 'name',
            **self.config.get('chart', {})
        }

    def build_registry(self, companies_df: pd.DataFrame) -> CompanyRegistry:
        """
        Build the company registry.

        Args:
            companies_df: DataFrame with uuid and name columns

        Returns:
            CompanyRegistry in file order
        """
        df = companies_df.rename(columns=self.column_mapping)
        self._require(df, ['uuid', 'name'], 'company')

        companies = [
            Company(uuid=str(row['uuid']).strip(), name=str(row['name']).strip())
            for _, row in df.iterrows()
            if pd.notna(row['uuid'])
        ]
        logger.info(f"Loaded {len(companies)} companies")
        return CompanyRegistry(companies)

    def build_chart(self, categories_df: pd.DataFrame, accounts_df: pd.DataFrame) -> ChartOfAccounts:
        """
        Build the chart of accounts.

        Args:
            categories_df: DataFrame with uuid, account_code and name columns
            accounts_df: DataFrame with uuid, category_uuid, company_uuid,
                account_code, description, shared and salary columns

        Returns:
            ChartOfAccounts sorted by category account code
        """
        categories = categories_df.rename(columns=self.column_mapping)
        accounts = accounts_df.rename(columns=self.column_mapping)
        self._require(categories, ['uuid', 'account_code', 'name'], 'category')
        self._require(accounts, ['uuid', 'category_uuid', 'company_uuid', 'account_code'], 'account')

        accounts_by_category: Dict[str, List[AccountingAccount]] = {}
        for _, row in accounts.iterrows():
            account = AccountingAccount(
                uuid=str(row['uuid']).strip(),
                company_uuid=str(row['company_uuid']).strip(),
                account_code=int(row['account_code']),
                description=str(row['description']) if pd.notna(row.get('description')) else '',
                shared=parse_flag(row.get('shared', False)),
                salary=parse_flag(row.get('salary', False))
            )
            accounts_by_category.setdefault(str(row['category_uuid']).strip(), []).append(account)

        result = []
        for _, row in categories.iterrows():
            uuid = str(row['uuid']).strip()
            members = sorted(accounts_by_category.pop(uuid, []), key=lambda a: a.account_code)
            result.append(AccountingCategory(
                uuid=uuid,
                account_code=str(row['account_code']).strip(),
                name=str(row['name']).strip(),
                accounts=tuple(members)
            ))

        if accounts_by_category:
            orphaned = sum(len(v) for v in accounts_by_category.values())
            logger.warning(f"Ignored {orphaned} accounts referencing unknown categories: {sorted(accounts_by_category)}")

        chart = ChartOfAccounts(result)
        logger.info(f"Loaded chart of accounts: {len(chart)} categories, "
                    f"{sum(len(c.accounts) for c in result)} accounts")
        return chart

    @staticmethod
    def _require(df: pd.DataFrame, columns: List[str], label: str):
        missing = [col for col in columns if col not in df.columns]
        if missing:
            raise ValueError(f"Missing required {label} columns: {missing}")
