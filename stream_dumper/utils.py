"""
Utility functions for Stream DB Dumper.
"""

import logging
import sys
from pathlib import Path
from typing import Any, TextIO

from .models import ReadTableOptions, TablesConfig


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration. Console output goes to stderr, stdout may carry the dump."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def open_output(path: str) -> TextIO:
    """Open the dump destination; ``-`` means stdout."""
    if path == '-':
        return sys.stdout

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return open(output_path, 'w', encoding='utf-8')


def print_dry_run_info(tables: list[str], tables_config: TablesConfig) -> None:
    """Log what would be dumped in dry-run mode."""
    for table in tables:
        table_config = tables_config.find_by_name(table)
        if table_config is not None and table_config.ignore_data:
            logging.info(f"  - {table} (structure only, data ignored)")
            continue

        settings_parts = format_settings_display(ReadTableOptions.from_config(table_config))
        if settings_parts:
            logging.info(f"  - {table} ({', '.join(settings_parts)})")
        else:
            logging.info(f"  - {table} (no limits)")


def format_settings_display(options: ReadTableOptions) -> list[str]:
    """Format read options for display in dry-run mode."""
    parts = []
    if options.row_limit is not None:
        parts.append(f"limit={options.row_limit}")
    if options.order_by:
        parts.append(f"order={options.order_by} {options.order_direction}")
    if options.where_clause:
        parts.append(f"where='{options.where_clause}'")
    return parts
