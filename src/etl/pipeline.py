"""
Pipeline that loads the allocation inputs once and runs one report.
"""

import pandas as pd
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union
from datetime import datetime
import yaml

from .availability_processor import AvailabilityProcessor
from .chart_processor import ChartProcessor
from .ledger_processor import LedgerProcessor
from ..allocation.ledger import LedgerIndex
from ..allocation.lump_sums import LumpSumResolver
from ..allocation.periods import MonthPeriod
from ..allocation.registry import ChartOfAccounts, CompanyRegistry
from ..allocation.report_builder import AllocationReportBuilder, Granularity
from ..utils.file_handlers import FileHandler

logger = logging.getLogger(__name__)

REPORT_TYPES = ('ledger', 'totals', 'summary')


@dataclass(frozen=True)
class AllocationInputs:
    """Everything one report run reads, loaded in a single pass."""
    companies: CompanyRegistry
    chart: ChartOfAccounts
    ledger: pd.DataFrame
    lump_sums: pd.DataFrame
    availability: pd.DataFrame


def load_config(config_path: Optional[Union[str, Path]]) -> Dict:
    """Load configuration from YAML file; a missing file gives an empty config."""
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    return {}


class AllocationPipeline:
    """Load exports, build the in-memory indexes and produce a report."""

    def __init__(self, config: Optional[Union[Dict, str, Path]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Configuration dictionary or path to a YAML file
        """
        self.config = config if isinstance(config, dict) else load_config(config)
        self.file_handler = FileHandler(
            self.config.get('base_path', '.'),
            self.config.get('output_path')
        )
        mappings = self.config.get('column_mappings', {})
        self.ledger_processor = LedgerProcessor(mappings)
        self.chart_processor = ChartProcessor(mappings)
        self.availability_processor = AvailabilityProcessor(mappings)

    @property
    def allocation_config(self) -> Dict:
        return self.config.get('allocation', {}) or {}

    def load_inputs(self) -> AllocationInputs:
        """
        Read and normalize every input export.

        Raises:
            FileNotFoundError: if a required export is missing
        """
        files = self.file_handler.find_inputs(self.config.get('input_files'))

        missing = [kind for kind, path in files.items() if path is None and kind != 'lump_sums']
        if missing:
            raise FileNotFoundError(f"Missing required input files: {missing}")

        read = self.file_handler.read_table
        companies = self.chart_processor.build_registry(read(files['companies']))
        chart = self.chart_processor.build_chart(read(files['categories']), read(files['accounts']))
        ledger = self.ledger_processor.process_ledger(read(files['ledger']))

        if files['lump_sums'] is not None:
            lump_sums = self.ledger_processor.process_lump_sums(read(files['lump_sums']))
        else:
            lump_sums = pd.DataFrame(columns=self.ledger_processor.required_lump_sum_columns)

        availability = self.availability_processor.process(read(files['availability']))

        return AllocationInputs(companies, chart, ledger, lump_sums, availability)

    def build_report_builder(self, inputs: AllocationInputs, period: MonthPeriod) -> AllocationReportBuilder:
        return AllocationReportBuilder(
            chart=inputs.chart,
            companies=inputs.companies,
            ledger=LedgerIndex(inputs.ledger, period),
            lump_sums=LumpSumResolver(inputs.lump_sums, period),
            availability=inputs.availability,
            config=self.allocation_config
        )

    def run(self, company_uuid: str, period: MonthPeriod, report_type: str = 'ledger',
            granularity: Union[Granularity, str] = Granularity.PERIOD,
            category_uuid: Optional[str] = None,
            inputs: Optional[AllocationInputs] = None) -> Tuple[pd.DataFrame, Dict]:
        """
        Run one report for a primary company over a window.

        Args:
            company_uuid: Primary company id
            period: Report window
            report_type: 'ledger', 'totals' or 'summary'
            granularity: Month or period buckets for the totals report
            category_uuid: Restrict the summary to one category
            inputs: Preloaded inputs (loaded from disk when omitted)

        Returns:
            Tuple of (report DataFrame, metadata dict)
        """
        if report_type not in REPORT_TYPES:
            raise ValueError(f"Unknown report type: {report_type}")

        logger.info(f"Starting {report_type} report for {company_uuid} over {period}")

        try:
            inputs = inputs or self.load_inputs()
            builder = self.build_report_builder(inputs, period)
            primary = inputs.companies.find_company(company_uuid)

            if report_type == 'ledger':
                report_df = builder.ledger_report(company_uuid, period).to_frame()
            elif report_type == 'totals':
                report_df = builder.category_totals(company_uuid, period, granularity).to_frame()
            else:
                total = builder.period_total(company_uuid, period, category_uuid)
                report_df = pd.DataFrame([{
                    'company_uuid': primary.uuid,
                    'category_uuid': category_uuid,
                    'from_date': period.from_date,
                    'to_date': period.to_date,
                    'total': total
                }])

            metadata = self._generate_metadata(primary.uuid, primary.name, report_type, period, len(report_df))
            logger.info(f"{report_type.capitalize()} report completed for {primary.name}: {len(report_df)} rows")
            return report_df, metadata

        except Exception as e:
            logger.error(f"Allocation report failed: {str(e)}", exc_info=True)
            raise

    def _generate_metadata(self, company_uuid: str, company_name: str, report_type: str,
                           period: MonthPeriod, total_rows: int) -> Dict:
        """Generate metadata for the report run."""
        return {
            'company_uuid': company_uuid,
            'company_name': company_name,
            'report_type': report_type,
            'from_date': period.from_date.isoformat(),
            'to_date': period.to_date.isoformat(),
            'months': len(period),
            'processing_date': datetime.now().isoformat(),
            'total_rows': total_rows,
            'consultant_count_mode': self.allocation_config.get('consultant_count_mode', 'point_in_time'),
            'pipeline_version': '1.0.0'
        }
