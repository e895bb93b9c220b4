"""
Data validation utilities for the Intercompany Allocation System.
"""

import pandas as pd
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any
import yaml

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    'companies': ['uuid', 'name'],
    'categories': ['uuid', 'account_code', 'name'],
    'accounts': ['uuid', 'category_uuid', 'company_uuid', 'account_code'],
    'ledger': ['company_uuid', 'account_code', 'expense_date', 'amount'],
    'lump_sums': ['account_uuid', 'registered_date', 'amount'],
    'availability': ['user_uuid', 'company_uuid', 'status', 'consultant_type']
}

REQUIRED_CONFIG_SECTIONS = ['allocation']


def _new_results() -> Dict[str, Any]:
    return {
        'is_valid': True,
        'errors': [],
        'warnings': [],
        'stats': {}
    }


class DataValidator:
    """Validate input frames and configurations."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize validator with configuration.

        Args:
            config: Configuration dictionary
        """
        self.config = config or {}

    def _check_columns(self, df: pd.DataFrame, kind: str, results: Dict[str, Any]) -> bool:
        missing = [col for col in REQUIRED_COLUMNS[kind] if col not in df.columns]
        if missing:
            results['errors'].append(f"Missing required {kind} columns: {missing}")
            results['is_valid'] = False
            return False
        return True

    def validate_ledger_data(self, df: pd.DataFrame,
                             known_companies: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Validate finance-detail rows.

        Args:
            df: Ledger DataFrame (processed column names)
            known_companies: Company uuids from the registry

        Returns:
            Validation results dictionary
        """
        results = _new_results()
        if not self._check_columns(df, 'ledger', results):
            return results

        amounts = pd.to_numeric(df['amount'], errors='coerce')
        dates = pd.to_datetime(df['expense_date'], errors='coerce')

        bad_amounts = int(amounts.isna().sum())
        if bad_amounts:
            results['warnings'].append(f"Found {bad_amounts} rows with non-numeric amounts (treated as 0)")

        bad_dates = int(dates.isna().sum())
        if bad_dates:
            results['warnings'].append(f"Found {bad_dates} rows without a valid expense date (will be excluded)")

        if known_companies is not None:
            unknown = sorted(set(df['company_uuid'].dropna().astype(str)) - set(known_companies))
            if unknown:
                results['warnings'].append(f"Ledger references unknown companies: {unknown}")

        results['stats'] = {
            'total_rows': len(df),
            'unique_accounts': df['account_code'].nunique(),
            'unique_companies': df['company_uuid'].nunique(),
            'total_amount': float(amounts.fillna(0).sum()),
            'credit_rows': int((amounts < 0).sum()),
            'first_date': dates.min().date().isoformat() if dates.notna().any() else None,
            'last_date': dates.max().date().isoformat() if dates.notna().any() else None
        }

        return results

    def validate_chart_data(self, categories_df: pd.DataFrame,
                            accounts_df: pd.DataFrame) -> Dict[str, Any]:
        """
        Validate the chart of accounts.

        Args:
            categories_df: Category DataFrame
            accounts_df: Account DataFrame

        Returns:
            Validation results dictionary
        """
        results = _new_results()
        columns_ok = self._check_columns(categories_df, 'categories', results)
        columns_ok = self._check_columns(accounts_df, 'accounts', results) and columns_ok
        if not columns_ok:
            return results

        orphaned = ~accounts_df['category_uuid'].isin(categories_df['uuid'])
        if orphaned.any():
            results['warnings'].append(f"Found {int(orphaned.sum())} accounts with unknown categories (will be ignored)")

        duplicates = accounts_df.duplicated(subset=['company_uuid', 'account_code'])
        if duplicates.any():
            results['warnings'].append(
                f"Found {int(duplicates.sum())} duplicate (company, account code) pairs"
            )

        shared_col = accounts_df['shared'] if 'shared' in accounts_df.columns else pd.Series(dtype=object)
        salary_col = accounts_df['salary'] if 'salary' in accounts_df.columns else pd.Series(dtype=object)
        results['stats'] = {
            'categories': len(categories_df),
            'accounts': len(accounts_df),
            'shared_accounts': int(shared_col.astype(str).str.upper().isin(['1', 'TRUE', 'YES', 'Y']).sum()),
            'salary_accounts': int(salary_col.astype(str).str.upper().isin(['1', 'TRUE', 'YES', 'Y']).sum())
        }

        return results

    def validate_availability_data(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Validate employee availability rows.

        Args:
            df: Availability DataFrame

        Returns:
            Validation results dictionary
        """
        results = _new_results()
        if not self._check_columns(df, 'availability', results):
            return results

        has_month = ('year' in df.columns and 'month' in df.columns) or 'date' in df.columns
        if not has_month:
            results['errors'].append("Availability needs year/month columns or a date column")
            results['is_valid'] = False
            return results

        no_company = int(df['company_uuid'].isna().sum())
        if no_company:
            results['warnings'].append(f"Found {no_company} rows without a company (never counted)")

        duplicates_key = ['user_uuid', 'year', 'month'] if 'year' in df.columns else ['user_uuid', 'date']
        duplicates = int(df.duplicated(subset=duplicates_key).sum())
        if duplicates:
            results['warnings'].append(f"Found {duplicates} duplicate employee-month rows")

        consultants = df['consultant_type'].astype(str).str.upper() == 'CONSULTANT'
        results['stats'] = {
            'total_rows': len(df),
            'unique_employees': df['user_uuid'].nunique(),
            'consultant_rows': int(consultants.sum())
        }

        return results

    def validate_config(self, config_path: Path) -> Dict[str, Any]:
        """
        Validate a configuration file.

        Args:
            config_path: Path to YAML configuration

        Returns:
            Validation results dictionary
        """
        results = _new_results()
        results['config'] = {}

        if not config_path.exists():
            results['errors'].append(f"Configuration file not found: {config_path}")
            results['is_valid'] = False
            return results

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            results['errors'].append(f"Error loading configuration: {e}")
            results['is_valid'] = False
            return results

        results['config'] = config

        missing_sections = [s for s in REQUIRED_CONFIG_SECTIONS if s not in config]
        if missing_sections:
            results['warnings'].append(f"Missing configuration sections: {missing_sections}")

        allocation = config.get('allocation', {}) or {}
        multiplier = allocation.get('salary_buffer_multiplier')
        if multiplier is not None and float(multiplier) != 1.02:
            results['warnings'].append(f"salary_buffer_multiplier overridden to {multiplier} (default 1.02)")

        mode = allocation.get('consultant_count_mode')
        if mode is not None and mode not in ('point_in_time', 'period_average'):
            results['errors'].append(f"Unknown consultant_count_mode: {mode}")
            results['is_valid'] = False

        basis = allocation.get('secondary_salary_basis')
        if basis is not None and basis not in ('owner', 'pool'):
            results['errors'].append(f"Unknown secondary_salary_basis: {basis}")
            results['is_valid'] = False

        logger.info(f"Configuration validation completed for {config_path}")
        return results


def validate_inputs(input_files: Dict[str, Optional[Path]], config: Dict) -> Tuple[bool, List[str]]:
    """
    Quick validation function for input files and configuration.

    Args:
        input_files: Mapping of input kind to located path (None when absent)
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_messages)
    """
    errors = []

    for kind in ('companies', 'categories', 'accounts', 'ledger', 'availability'):
        path = input_files.get(kind)
        if path is None or not Path(path).exists():
            errors.append(f"Required {kind} file not found")

    if not config:
        errors.append("No configuration provided")

    return len(errors) == 0, errors
