"""
Main pipeline orchestration for the pizza sales analytics pipeline.
"""
import logging
import argparse
import sys
import time
import traceback
from datetime import datetime

from pizza_analytics.analytics import PizzaSalesAnalytics
from pizza_analytics.config import SOURCES, Config
from pizza_analytics.db.engine import create_db_engine
from pizza_analytics.ingestion.loader import load_csv_tables, load_database_tables
from pizza_analytics.loading.writer import (
    export_results_to_csv,
    stage_source_tables,
    write_report_tables,
)
from pizza_analytics.reporting.assembler import assemble_report
from pizza_analytics.transformation.joins import check_for_missing_relationships
from pizza_analytics.transformation.quality import count_issues, run_data_quality_checks

logger = logging.getLogger(__name__)


def _override(config, section, key, value):
    if value is not None:
        config.config[section][key] = str(value).lower() if isinstance(value, bool) else str(value)


def run_pipeline(config_file='config.ini', source=None, input_dir=None, strict=None,
                 top_n=None, top_n_revenue=None, top_n_per_category=None,
                 export_csv=None, write_db=None, stage_db=False):
    """
    Load the source tables, compute every report and export the results.

    Arguments left as None fall back to the config file.

    Returns:
        dict: run statistics; on success ``report`` holds the report tables
    """
    start_time = time.time()
    statistics = {
        'start_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'status': 'failed',
        'stages': {},
    }

    try:
        config = Config(config_file)
        logger.info("Starting pizza sales analytics pipeline")

        # Override config settings if provided
        _override(config, 'PIPELINE', 'source', source)
        _override(config, 'PATHS', 'input_dir', input_dir)
        _override(config, 'PIPELINE', 'strict_references', strict)
        _override(config, 'PIPELINE', 'top_n', top_n)
        _override(config, 'PIPELINE', 'top_n_revenue', top_n_revenue)
        _override(config, 'PIPELINE', 'top_n_per_category', top_n_per_category)
        _override(config, 'PIPELINE', 'export_csv', export_csv)
        _override(config, 'PIPELINE', 'write_database', write_db)

        run_source = config.get_source()
        run_strict = config.is_strict()
        logger.info(f"Pipeline mode: source={run_source}, strict={run_strict}")

        # ---- Ingestion
        stage_start = time.time()
        engine = None

        if run_source == 'database':
            engine = create_db_engine(config)
            tables = load_database_tables(engine)
        else:
            tables = load_csv_tables(config.get_input_path())

        statistics['stages']['ingestion'] = {
            'source': run_source,
            'rows_processed': tables.row_counts(),
            'duration': time.time() - stage_start
        }

        # ---- Quality checks
        stage_start = time.time()

        quality_results = run_data_quality_checks(tables)
        relationship_issues = check_for_missing_relationships(tables)

        statistics['stages']['quality_check'] = {
            'issues_found': count_issues(quality_results),
            'orders_with_no_details': relationship_issues['orders_with_no_details_count'],
            'unused_pizzas': relationship_issues['unused_pizzas_count'],
            'duration': time.time() - stage_start
        }

        # ---- Transformation
        stage_start = time.time()

        analytics = PizzaSalesAnalytics(tables, strict=run_strict)
        report = assemble_report(
            analytics,
            top_n=config.get_top_n('top_n'),
            top_n_revenue=config.get_top_n('top_n_revenue'),
            top_n_per_category=config.get_top_n('top_n_per_category')
        )

        statistics['stages']['transformation'] = {
            'joined_rows': len(analytics.rows),
            'rows_generated': {name: len(df) for name, df in report.items()},
            'duration': time.time() - stage_start
        }

        # ---- Loading
        stage_start = time.time()
        loading = {}

        if stage_db or config.is_write_database_enabled():
            engine = engine or create_db_engine(config)

        if stage_db:
            loading['staged_rows'] = stage_source_tables(engine, tables)

        if config.is_write_database_enabled():
            loading['tables_written'] = len(write_report_tables(engine, report))

        if config.is_export_csv_enabled():
            exported_files = export_results_to_csv(report, config.get_output_path())
            loading['files_exported'] = len(exported_files)
            loading['file_paths'] = exported_files

        if loading:
            loading['duration'] = time.time() - stage_start
            statistics['stages']['loading'] = loading

        statistics['report'] = report
        statistics['status'] = 'success'
        logger.info("Pizza sales analytics pipeline completed successfully")

    except Exception as e:
        logger.error(f"Pipeline execution failed: {str(e)}")
        logger.error(traceback.format_exc())
        statistics['status'] = 'failed'
        statistics['error'] = str(e)

    statistics['duration'] = time.time() - start_time

    return statistics


def build_parser():
    parser = argparse.ArgumentParser(description='Pizza Sales Analytics')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    parser.add_argument('--source', choices=SOURCES, help='Read input tables from CSV files or the database')
    parser.add_argument('--input-dir', help='Directory holding the input CSV files')
    parser.add_argument('--strict', dest='strict', action='store_true', default=None,
                        help='Fail on foreign keys that do not resolve')
    parser.add_argument('--lenient', dest='strict', action='store_false',
                        help='Drop rows whose foreign keys do not resolve')
    parser.add_argument('--top-n', type=int, help='Rows in the top pizzas by quantity report')
    parser.add_argument('--top-n-revenue', type=int, help='Rows in the top pizzas by revenue report')
    parser.add_argument('--top-n-per-category', type=int, help='Rank threshold within each category')
    parser.add_argument('--export-csv', action='store_true', default=None, help='Export results to CSV files')
    parser.add_argument('--write-db', action='store_true', default=None, help='Write report tables to the database')
    parser.add_argument('--stage-db', action='store_true', help='Copy the loaded source tables into the database')
    return parser


def main(argv=None):
    """Command line entry point."""
    args = build_parser().parse_args(argv)

    results = run_pipeline(
        config_file=args.config,
        source=args.source,
        input_dir=args.input_dir,
        strict=args.strict,
        top_n=args.top_n,
        top_n_revenue=args.top_n_revenue,
        top_n_per_category=args.top_n_per_category,
        export_csv=args.export_csv,
        write_db=args.write_db,
        stage_db=args.stage_db
    )

    # Print summary
    print("\nPipeline Execution Summary:")
    print(f"Status: {results['status']}")
    print(f"Duration: {results['duration']:.2f} seconds")

    if results['status'] == 'failed' and 'error' in results:
        print(f"Error: {results['error']}")

    for stage, stats in results.get('stages', {}).items():
        print(f"\n{stage.capitalize()} stage:")
        for key, value in stats.items():
            if key not in ('rows_processed', 'rows_generated', 'file_paths', 'staged_rows'):
                print(f"  {key}: {value}")

    for name, df in results.get('report', {}).items():
        print(f"\n{name.replace('_', ' ').capitalize()}:")
        print(df.to_string(index=False))

    return 0 if results['status'] == 'success' else 1


if __name__ == "__main__":
    sys.exit(main())
