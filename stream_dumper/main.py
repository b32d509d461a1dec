#!/usr/bin/env python3
"""
Stream DB Dumper - CLI Entry Point
==================================
Dumps a MySQL database as a single SQL text stream:
- Schema preamble first
- One INSERT statement per row
- One concurrent worker per table
- Per-table data exclusion and read filters
"""

import argparse
import logging
import sys

import yaml

from .config import ConfigLoader
from .dumper import TextDumper
from .errors import CloseError, DumpAbortedError
from .reader import MySQLReader
from .utils import open_output, print_dry_run_info, setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Stream DB Dumper - dump a database as SQL INSERT statements'
    )
    parser.add_argument(
        '-c', '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '-o', '--output',
        help="Output file, '-' for stdout (overrides output.file in config)"
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be dumped without actually dumping'
    )
    parser.add_argument(
        '--concurrency',
        type=int,
        help=f'Maximum number of tables written at once (default: {TextDumper.DEFAULT_CONCURRENCY})'
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = ConfigLoader(args.config)
        tables_config = config.get_tables_config()
        policy = config.get_unsupported_type_policy()
        reader = MySQLReader.from_settings(config.get_source())
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file: {e}", file=sys.stderr)
        sys.exit(1)
    except (KeyError, ValueError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    log_settings = config.get_logging_settings()
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    output_settings = config.get_output_settings()
    concurrency = args.concurrency or output_settings.get('concurrency', TextDumper.DEFAULT_CONCURRENCY)

    # Dry run mode
    if args.dry_run:
        logging.info("DRY RUN MODE - No data will be dumped")
        try:
            with reader:
                tables = reader.get_tables()
        except Exception as e:
            logging.error(f"Fatal error: {e}")
            sys.exit(1)
        logging.info(f"Would dump database: {reader.database} ({len(tables)} table(s))")
        print_dry_run_info(tables, tables_config)
        sys.exit(0)

    # Run dump
    output_path = args.output or output_settings.get('file', '-')
    try:
        output = open_output(output_path)
    except OSError as e:
        logging.error(f"Could not open output '{output_path}': {e}")
        sys.exit(1)
    dumper = TextDumper(
        output,
        reader,
        on_unsupported_type=policy,
        wait_timeout=output_settings.get('wait_timeout')
    )

    try:
        with reader:
            stats = dumper.dump(tables_config, concurrency=concurrency)
    except DumpAbortedError as e:
        stats = e.stats
        logging.error(f"Fatal error: {e}")
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        if output is not sys.stdout:
            try:
                dumper.close()
            except CloseError as e:
                logging.error(str(e))
        else:
            output.flush()

    # Print summary
    logging.info("=" * 50)
    logging.info("DUMP COMPLETE")
    logging.info(f"Tables: {len(stats.tables)}")
    logging.info(f"Skipped: {len(stats.skipped_tables)}")
    logging.info(f"Total Rows: {stats.total_rows}")

    if stats.errors:
        logging.warning(f"Errors: {len(stats.errors)}")
        for err in stats.errors:
            logging.warning(f"  - {err['table']}: {err['error']}")
        sys.exit(1)


if __name__ == '__main__':
    main()
