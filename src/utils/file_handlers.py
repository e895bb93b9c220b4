"""
File handling utilities for the Intercompany Allocation System.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_INPUT_FILES = {
    'companies': 'companies.csv',
    'categories': 'accounting_categories.csv',
    'accounts': 'accounting_accounts.csv',
    'ledger': 'finance_details.csv',
    'lump_sums': 'account_lump_sums.csv',
    'availability': 'employee_availability.csv'
}

OPTIONAL_INPUTS = {'lump_sums'}


class FileHandler:
    """Handle file operations for ledger, chart and availability data."""

    def __init__(self, base_path: Union[str, Path], output_path: Optional[Union[str, Path]] = None):
        """
        Initialize FileHandler with base path.

        Args:
            base_path: Base directory path for the project
            output_path: Directory for written reports (default: <base>/output)
        """
        self.base_path = Path(base_path)
        self.raw_path = self.base_path / "data" / "raw"
        self.output_path = Path(output_path) if output_path else self.base_path / "output"

    def find_inputs(self, input_files: Optional[Dict[str, str]] = None) -> Dict[str, Optional[Path]]:
        """
        Locate the input exports under the raw data directory.

        Args:
            input_files: Mapping of input kind to file name, overriding defaults

        Returns:
            Dictionary of input kind to path (None when the file is absent)
        """
        names = {**DEFAULT_INPUT_FILES, **(input_files or {})}
        files = {}

        for kind, name in names.items():
            path = self.raw_path / name
            if path.exists():
                files[kind] = path
            else:
                files[kind] = None
                level = logging.INFO if kind in OPTIONAL_INPUTS else logging.WARNING
                logger.log(level, f"No {kind} file found at {path}")

        found = [kind for kind, path in files.items() if path is not None]
        logger.info(f"Found input files for: {found}")
        return files

    def read_table(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """Read a CSV or Excel file based on its extension."""
        file_path = Path(file_path)
        if file_path.suffix.lower() in ('.xlsx', '.xls'):
            return self.read_excel(file_path)
        return self.read_csv(file_path)

    def read_excel(self, file_path: Union[str, Path],
                   sheet_name: Optional[Union[str, int]] = None) -> pd.DataFrame:
        """
        Read Excel file with error handling.

        Args:
            file_path: Path to Excel file
            sheet_name: Sheet name or index to read

        Returns:
            DataFrame with Excel data
        """
        file_path = Path(file_path)

        try:
            if sheet_name is not None:
                df = pd.read_excel(file_path, sheet_name=sheet_name)
            else:
                df = pd.read_excel(file_path)

            logger.info(f"Successfully read {len(df)} rows from {file_path.name}")
            return df

        except Exception as e:
            logger.error(f"Error reading Excel file {file_path.name}: {e}")
            raise

    def read_csv(self, file_path: Union[str, Path],
                 encoding: Optional[str] = None) -> pd.DataFrame:
        """
        Read CSV file with automatic encoding detection.

        Args:
            file_path: Path to CSV file
            encoding: Optional encoding specification

        Returns:
            DataFrame with CSV data
        """
        file_path = Path(file_path)

        encodings = [encoding] if encoding else ['utf-8', 'latin-1', 'cp1252']

        for enc in encodings:
            try:
                df = pd.read_csv(file_path, encoding=enc)
                logger.info(f"Successfully read {len(df)} rows from {file_path.name} using {enc} encoding")
                return df
            except UnicodeDecodeError:
                continue

        raise ValueError(f"Could not read {file_path.name} with any supported encoding")

    def save_report(self, df: pd.DataFrame, company: str, from_month: str,
                    to_month: str, report_type: str = "ledger") -> Path:
        """
        Save a flattened report as CSV, amounts rounded to cents.

        Args:
            df: Report DataFrame to save
            company: Company name or id used in the directory and file name
            from_month: First month of the window (YYYY-MM)
            to_month: Last month of the window (YYYY-MM)
            report_type: Report shape (ledger, totals, summary)

        Returns:
            Path to saved file
        """
        output_dir = self.output_path / _slug(company)
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = pd.Timestamp.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{_slug(company)}_{from_month}_{to_month}_{report_type}_{timestamp}.csv"
        output_path = output_dir / filename

        df.round(2).to_csv(output_path, index=False)
        logger.info(f"Saved {len(df)} rows to {output_path}")

        return output_path

    def get_latest_report(self, company: str, report_type: str = "ledger") -> Optional[Path]:
        """
        Get the most recent saved report of a type for a company.

        Args:
            company: Company name or id
            report_type: Report shape

        Returns:
            Path to latest report file or None if not found
        """
        report_dir = self.output_path / _slug(company)

        if not report_dir.exists():
            return None

        files: List[Path] = list(report_dir.glob(f"*_{report_type}_*.csv"))
        if not files:
            return None

        return max(files, key=lambda p: p.stat().st_mtime)


def _slug(value: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in str(value).strip()).lower()
