# cli.py: olist-insights command line entry point
import argparse
import logging
import sys
from datetime import datetime

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from olist_insights.config import DB_URL, EXPORTS_DIR, PGSCHEMA, get_engine
from olist_insights.dataset import DatasetError, load_tables
from olist_insights.quality import validate_tables
from olist_insights.report import ANALYSES, check_names, export_to_excel, run_analyses
from olist_insights.views import create_views

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# pandas re-raises driver failures from read_sql as its own DatabaseError
DATABASE_ERRORS = (SQLAlchemyError, pd.errors.DatabaseError)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="olist-insights",
        description="Descriptive analytics over the Olist e-commerce dataset",
    )
    parser.add_argument("--list", action="store_true",
                        help="List available analyses and exit")
    parser.add_argument("--only", nargs="+", metavar="NAME",
                        help="Run only these analyses (default: all)")
    parser.add_argument("--export", action="store_true",
                        help="Write every result set to an Excel workbook")
    parser.add_argument("--exports-dir", default=EXPORTS_DIR,
                        help=f"Directory for exported workbooks (default: {EXPORTS_DIR})")
    parser.add_argument("--create-views", action="store_true",
                        help="Create or replace the convenience views before running")
    parser.add_argument("--validate", action="store_true",
                        help="Run structural checks first; stop with status 1 on errors")
    parser.add_argument("--db-url", default=DB_URL,
                        help="SQLAlchemy database URL (default: DB_URL / PG* environment)")
    parser.add_argument("--schema", default=PGSCHEMA,
                        help=f"Schema holding the Olist tables (default: {PGSCHEMA})")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def print_results(results):
    for name, df in results.items():
        print(f"\n=== {name} ===")
        print(df.to_string(index=False) if not df.empty else "(no rows)")


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.list:
        for name in ANALYSES:
            print(name)
        return 0

    try:
        names = check_names(args.only) if args.only else None
    except DatasetError as e:
        logger.error("%s", e)
        return 2

    engine = get_engine(args.db_url, args.schema)
    try:
        if args.create_views:
            create_views(engine)

        tables = load_tables(engine)

        if args.validate:
            report = validate_tables(tables)
            if report["errors"]:
                return 1

        results = run_analyses(tables, names)
        print_results(results)

        if args.export:
            export_to_excel(
                results,
                f"olist_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx",
                args.exports_dir,
            )
    except DATABASE_ERRORS as e:
        logger.error("Database error: %s", e)
        return 1
    except DatasetError as e:
        logger.error("Dataset error: %s", e)
        return 1
    finally:
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
