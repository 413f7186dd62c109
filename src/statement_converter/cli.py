"""
Command-line entry point: convert statement PDFs to CSV files.

Usage:
    bank-statement-converter statement.pdf
    bank-statement-converter --bank hsbc --output jan.csv statement.pdf
    bank-statement-converter --ocr scanned1.pdf scanned2.pdf
"""

import argparse
import logging
import sys
from pathlib import Path

from statement_converter import __version__
from statement_converter.core.errors import get_suggestion
from statement_converter.core.exceptions import StatementProcessingError
from statement_converter.services.converter import StatementConverter
from statement_converter.utils.logger import setup_logging
from statement_converter.writers.csv_writer import CSVWriter, format_amount

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bank-statement-converter",
        description="Convert UK bank statement PDFs (Metro Bank, HSBC, Barclays) to CSV",
    )
    parser.add_argument("inputs", nargs="+", help="Statement PDF file(s)")
    parser.add_argument("--bank", help="Bank name (metro, hsbc, barclays); auto-detected if omitted")
    parser.add_argument("--output", "-o", help="Output CSV path (single input only)")
    parser.add_argument("--no-header", action="store_true", help="Omit metadata and header rows")
    parser.add_argument("--ocr", action="store_true", help="Allow OCR for scanned statements")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def convert_one(
    converter: StatementConverter,
    writer: CSVWriter,
    source: Path,
    output: Path,
    bank: str | None,
    ocr: bool,
) -> None:
    result = converter.convert_file(source, bank=bank, ocr=ocr)
    info = result.statement
    writer.write_to_file(output, info)

    print(f"{source} -> {output}")
    print(f"  Bank:         {info.bank.value}{' (detected)' if result.detected_bank else ''}")
    print(f"  Extraction:   {result.extraction.strategy}")
    print(f"  Transactions: {len(info.transactions)}")
    print(f"  Total debits:  {format_amount(info.total_debits)}")
    print(f"  Total credits: {format_amount(info.total_credits)}")
    for warning in result.warnings:
        print(f"  Warning: {warning}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.output and len(args.inputs) > 1:
        parser.error("--output can only be used with a single input file")

    setup_logging(args.log_level)

    converter = StatementConverter()
    writer = CSVWriter(include_header=not args.no_header)

    failures = 0
    for name in args.inputs:
        source = Path(name)
        output = Path(args.output) if args.output else source.with_suffix(".csv")
        try:
            convert_one(converter, writer, source, output, args.bank, args.ocr)
        except StatementProcessingError as e:
            logger.debug("Conversion failed for %s", source, exc_info=True)
            print(f"Error: {source}: {e} ({e.error_code})", file=sys.stderr)
            print(f"  {get_suggestion(e.error_code)}", file=sys.stderr)
            failures += 1
        except OSError as e:
            print(f"Error: {source}: {e}", file=sys.stderr)
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
