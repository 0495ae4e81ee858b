"""
Export of assembled report tables to CSV files and database tables.
"""
import logging
import traceback
import os
from decimal import Decimal

import pandas as pd
from sqlalchemy import Numeric
from sqlalchemy.exc import SQLAlchemyError

from pizza_analytics.db.engine import init_db
from pizza_analytics.db.models import Base, OrderDetailRow, OrderRow, PizzaRow, PizzaTypeRow
from pizza_analytics.models import ORDER_DETAILS, ORDERS, PIZZA_TYPES, PIZZAS

logger = logging.getLogger(__name__)

REPORT_TABLE_PREFIX = 'report_'

# Parents before children on insert; reversed on delete
_STAGING_ORDER = (
    (PIZZA_TYPES, PizzaTypeRow),
    (PIZZAS, PizzaRow),
    (ORDERS, OrderRow),
    (ORDER_DETAILS, OrderDetailRow),
)


def _source_frames(tables):
    midnight = pd.Timestamp('1970-01-01')
    return {
        ORDERS: tables.orders.assign(
            order_date=tables.orders['order_date'].dt.date,
            order_time=(midnight + tables.orders['order_time']).dt.time,
        ),
        ORDER_DETAILS: tables.order_details,
        PIZZAS: tables.pizzas.drop(columns=['price_units']),
        PIZZA_TYPES: tables.pizza_types,
    }


def stage_source_tables(engine, tables):
    """
    Replace the contents of the four source tables with ``tables``.

    Creates the tables first if they do not exist yet.
    """
    try:
        init_db(engine, Base)
        frames = _source_frames(tables)

        with engine.begin() as conn:
            for _, model in reversed(_STAGING_ORDER):
                conn.execute(model.__table__.delete())

            for table_name, _ in _STAGING_ORDER:
                frames[table_name].to_sql(
                    table_name,
                    conn,
                    if_exists='append',
                    index=False,
                    dtype={'price': Numeric(10, 4)} if table_name == PIZZAS else None
                )
                logger.info(f"Staged {len(frames[table_name])} rows into {table_name}")

        return tables.row_counts()
    except SQLAlchemyError as e:
        logger.error(f"Error staging source tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def _decimal_columns(df):
    return [
        col for col in df.columns
        if df[col].map(lambda value: isinstance(value, Decimal)).any()
    ]


def write_report_tables(engine, report, prefix=REPORT_TABLE_PREFIX):
    """
    Write each report DataFrame to its own table, replacing earlier runs.

    Args:
        engine: SQLAlchemy engine
        report (dict): report name -> DataFrame
        prefix (str): table name prefix

    Returns:
        dict: report name -> table name
    """
    written = {}
    try:
        logger.info(f"Writing {len(report)} report tables to the database")

        for name, df in report.items():
            table_name = f"{prefix}{name}"
            if df is None:
                logger.warning(f"No data to load for table {table_name}")
                continue

            # Decimal values go through Numeric so every dialect can bind them
            dtypes = {col: Numeric(18, 4) for col in _decimal_columns(df)}
            df.to_sql(table_name, engine, if_exists='replace', index=False, dtype=dtypes)
            written[name] = table_name
            logger.info(f"Successfully loaded {len(df)} rows to {table_name}")

        return written
    except SQLAlchemyError as e:
        logger.error(f"Error writing report tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def export_results_to_csv(report, output_dir):
    """
    Export each report DataFrame to ``<output_dir>/<name>.csv``.

    Returns:
        dict: report name -> file path
    """
    try:
        # Create output directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        exported_files = {}

        for name, df in report.items():
            if df is None:
                continue
            file_path = os.path.join(output_dir, f"{name}.csv")
            df.to_csv(file_path, index=False)
            exported_files[name] = file_path
            logger.info(f"Exported {len(df)} rows to {file_path}")

        return exported_files
    except OSError as e:
        logger.error(f"Error exporting results to CSV: {str(e)}")
        logger.error(traceback.format_exc())
        raise
