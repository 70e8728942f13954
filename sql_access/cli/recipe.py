"""
Run the fruit walkthrough from the command line.

The database is chosen with ``--url`` (any connection string accepted by
``ConnectionDescriptor.from_string``) or ``--alias`` (default
``default``, i.e. ``DATABASE_URL``).  The report is printed as JSON and,
with ``--out``, also written to a file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from ..config import config
from ..infra.db import ConnectionDescriptor, get_connection, open_connection
from ..infra.reporting.json_reporter import to_json, write_json
from ..services.recipe import run_recipe


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Run the fruit SQL walkthrough')
    parser.add_argument('--url', type=str, help='Connection string; overrides --alias')
    parser.add_argument('--alias', type=str, default='default', help='Registered connection alias')
    parser.add_argument('--out', type=str, help='Write the JSON report to this file')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL)
    logging.info('[cli/recipe] Parsed arguments', extra={'alias': args.alias, 'out': args.out})
    if args.url:
        conn = open_connection(ConnectionDescriptor.from_string(args.url))
    else:
        conn = get_connection(args.alias)
    try:
        report = run_recipe(conn)
    finally:
        conn.close()
    print(to_json(report))
    if args.out:
        write_json(args.out, report)


if __name__ == '__main__':
    try:
        main()
    except Exception as err:
        logging.error('Error executing cli/recipe', exc_info=err)
        sys.exit(2)
