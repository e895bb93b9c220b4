#!/usr/bin/env python3
"""
Main script for running the intercompany cost allocation reports.
This is the primary entry point for the monthly batch job.
"""

import sys
import argparse
import logging
from pathlib import Path
from datetime import datetime
import yaml

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.allocation.errors import AllocationError
from src.allocation.periods import resolve_period
from src.allocation.report_builder import Granularity
from src.etl.pipeline import AllocationPipeline, REPORT_TYPES


def setup_logging(config: dict):
    """Setup logging configuration."""
    log_config = config.get('logging', {})

    # Create logs directory
    logs_path = Path(config.get('logs_path', 'output/logs'))
    logs_path.mkdir(parents=True, exist_ok=True)

    # Configure logging
    log_level = getattr(logging, log_config.get('level', 'INFO').upper())
    log_format = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Create logger
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # Console handler
    if log_config.get('console_handler', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(console_handler)

    # File handler
    if log_config.get('file_handler', True):
        log_file = logs_path / f"allocation_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(file_handler)

    return logger


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Error loading config from {config_path}: {e}")
        sys.exit(1)


def run_reports(pipeline: AllocationPipeline, companies: list, period, report_types: list,
                granularity: str, category: str, dry_run: bool, logger: logging.Logger) -> int:
    """
    Run the requested reports for each company.

    Returns:
        Number of failed reports
    """
    inputs = pipeline.load_inputs()
    if not companies:
        companies = [c.uuid for c in inputs.companies.list_companies()]

    logger.info(f"Reports to run: {report_types} for {len(companies)} companies over {period}")

    if dry_run:
        logger.info("Dry run mode - would process the following:")
        for company in companies:
            for report_type in report_types:
                logger.info(f"  - {company} {report_type}")
        return 0

    failures = 0
    for company in companies:
        for report_type in report_types:
            try:
                report_df, metadata = pipeline.run(
                    company, period, report_type,
                    granularity=granularity, category_uuid=category, inputs=inputs
                )
                output_path = pipeline.file_handler.save_report(
                    report_df,
                    metadata['company_name'],
                    f"{period.from_date:%Y-%m}",
                    metadata['to_date'][:7],
                    report_type
                )
                logger.info(f"Report saved to: {output_path}")
            except AllocationError as e:
                failures += 1
                logger.error(f"Error processing {company} {report_type}: {e}")

    return failures


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run Intercompany Cost Allocation")
    parser.add_argument(
        "--config",
        type=Path,
        default="config/allocation.yaml",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--company",
        action="append",
        default=[],
        help="Primary company uuid (repeatable; default: every company)"
    )
    parser.add_argument(
        "--from-date",
        type=str,
        help="First month to include (YYYY-MM-DD, default 2017-01-01)"
    )
    parser.add_argument(
        "--to-date",
        type=str,
        help="Last month to include (YYYY-MM-DD, default: current month)"
    )
    parser.add_argument(
        "--report",
        choices=REPORT_TYPES + ('all',),
        default="ledger",
        help="Report shape to produce"
    )
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=Granularity.PERIOD.value,
        help="Bucket size for the totals report"
    )
    parser.add_argument(
        "--category",
        type=str,
        help="Category uuid for the summary report (default: all categories)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be processed without actually processing"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    logger = setup_logging(config)
    logger.info("Starting Intercompany Cost Allocation")

    try:
        period = resolve_period(args.from_date, args.to_date)
    except AllocationError as e:
        logger.error(str(e))
        return 2

    pipeline = AllocationPipeline(config)
    report_types = list(REPORT_TYPES) if args.report == 'all' else [args.report]

    try:
        failures = run_reports(pipeline, args.company, period, report_types,
                               args.granularity, args.category, args.dry_run, logger)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load inputs: {e}")
        return 1

    if failures:
        logger.error(f"{failures} reports failed")
        return 1

    logger.info("All reports processed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
