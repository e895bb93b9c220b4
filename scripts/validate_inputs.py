#!/usr/bin/env python3
"""
Input validation script for the allocation batch job.
Validates the chart of accounts, ledger and availability exports before processing.
"""

import sys
import argparse
import logging
from pathlib import Path
from datetime import datetime

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.etl.availability_processor import AvailabilityProcessor
from src.etl.chart_processor import ChartProcessor
from src.etl.ledger_processor import LedgerProcessor
from src.utils.file_handlers import FileHandler
from src.utils.validators import DataValidator, validate_inputs


def setup_logging(level: str = "INFO"):
    """Setup basic logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)


def validate_files(file_handler: FileHandler, files: dict, config: dict,
                   logger: logging.Logger) -> dict:
    """
    Validate every located input file.

    Returns:
        Dictionary of input kind to validation results
    """
    mappings = config.get('column_mappings', {})
    ledger_processor = LedgerProcessor(mappings)
    chart_processor = ChartProcessor(mappings)
    availability_processor = AvailabilityProcessor(mappings)
    validator = DataValidator(config)

    results = {}
    read = file_handler.read_table

    companies = None
    if files.get('companies'):
        companies_df = read(files['companies']).rename(columns=chart_processor.column_mapping)
        if 'uuid' in companies_df.columns:
            companies = companies_df['uuid'].astype(str).tolist()

    if files.get('categories') and files.get('accounts'):
        logger.info("Validating chart of accounts...")
        results['chart'] = validator.validate_chart_data(
            read(files['categories']).rename(columns=chart_processor.column_mapping),
            read(files['accounts']).rename(columns=chart_processor.column_mapping)
        )

    if files.get('ledger'):
        logger.info("Validating ledger...")
        results['ledger'] = validator.validate_ledger_data(
            read(files['ledger']).rename(columns=ledger_processor.ledger_mapping),
            known_companies=companies
        )
        stats = results['ledger']['stats']
        if stats:
            logger.info(f"Ledger: {stats['total_rows']} rows, {stats['total_amount']:,.2f} total amount")

    if files.get('availability'):
        logger.info("Validating availability...")
        results['availability'] = validator.validate_availability_data(
            read(files['availability']).rename(columns=availability_processor.column_mapping)
        )

    return results


def generate_validation_report(results: dict, file_errors: list, overall_valid: bool, output_path: Path):
    """Generate validation report."""
    report_lines = [
        "# Input Validation Report",
        f"Generated: {datetime.now().isoformat()}",
        "",
        "## Summary",
        f"- Inputs validated: {len(results)}",
        f"- Overall valid: {overall_valid}",
        ""
    ]

    if file_errors:
        report_lines.extend(["## Missing Files", ""])
        report_lines.extend(f"- {error}" for error in file_errors)
        report_lines.append("")

    for kind, result in results.items():
        status = "VALID" if result['is_valid'] else "INVALID"
        report_lines.append(f"- **{kind}**: {status}")

        for error in result['errors']:
            report_lines.append(f"  - Error: {error}")

        for warning in result['warnings']:
            report_lines.append(f"  - Warning: {warning}")

        for key, value in result['stats'].items():
            report_lines.append(f"  - {key}: {value}")
        report_lines.append("")

    with open(output_path, 'w') as f:
        f.write('\n'.join(report_lines))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate input files for allocation processing")
    parser.add_argument(
        "--config",
        type=Path,
        default="config/allocation.yaml",
        help="Configuration file path"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default="validation_report.md",
        help="Output path for validation report"
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with error code if validation fails"
    )

    args = parser.parse_args()

    logger = setup_logging()
    logger.info("Starting input validation")

    config = {}
    if args.config.exists():
        config_results = DataValidator().validate_config(args.config)
        for warning in config_results['warnings']:
            logger.warning(warning)
        for error in config_results['errors']:
            logger.error(error)
        config = config_results['config']
    else:
        logger.warning(f"No configuration at {args.config}; using defaults")

    file_handler = FileHandler(config.get('base_path', '.'))
    files = file_handler.find_inputs(config.get('input_files'))
    files_ok, file_errors = validate_inputs(files, config or {'allocation': {}})

    results = validate_files(file_handler, files, config, logger)
    overall_valid = files_ok and all(r['is_valid'] for r in results.values())

    logger.info(f"Generating validation report: {args.output}")
    generate_validation_report(results, file_errors, overall_valid, args.output)

    logger.info(f"Validation complete: {'PASS' if overall_valid else 'FAIL'}")

    if args.fail_on_error and not overall_valid:
        logger.error("Validation failed - exiting with error code")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
