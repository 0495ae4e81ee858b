"""
Data ingestion for the pizza sales analytics layer.

Every source ends up in ``load_tables``, which normalises the four input
tables to the fixed schema in ``pizza_analytics.models`` and validates them.
"""
import os
import logging
import traceback
from dataclasses import asdict, is_dataclass
from decimal import Decimal, InvalidOperation

import numpy as np
import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from pizza_analytics.errors import (
    InvalidPriceError,
    InvalidQuantityError,
    InvalidValueError,
    SchemaError,
)
from pizza_analytics.models import (
    MONEY_PLACES,
    ORDER_DETAILS,
    ORDERS,
    PIZZA_TYPES,
    PIZZAS,
    REQUIRED_COLUMNS,
    TABLE_COLUMNS,
    TABLE_NAMES,
    SalesTables,
)
from pizza_analytics.transformation.quality import check_missing_values, validate_tables

logger = logging.getLogger(__name__)

CSV_FILES = {
    ORDERS: 'orders.csv',
    ORDER_DETAILS: 'order_details.csv',
    PIZZAS: 'pizzas.csv',
    PIZZA_TYPES: 'pizza_types.csv',
}

_PRICE_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)
_ONE_DAY = pd.Timedelta(days=1)


def to_frame(table_name, data):
    """
    Turn a DataFrame, an iterable of mappings or an iterable of record
    dataclasses into a DataFrame with stripped column names.
    """
    if isinstance(data, pd.DataFrame):
        frame = data.copy()
    else:
        records = [asdict(record) if is_dataclass(record) else dict(record) for record in data]
        if records:
            frame = pd.DataFrame.from_records(records)
        else:
            frame = pd.DataFrame(columns=list(TABLE_COLUMNS[table_name]))

    frame = frame.rename(columns=lambda x: x.strip() if isinstance(x, str) else x)

    missing = [col for col in REQUIRED_COLUMNS[table_name] if col not in frame.columns]
    if missing:
        raise SchemaError(table_name, missing)

    return frame


def _require_complete(table_name, frame, columns):
    result = check_missing_values({table_name: frame[list(columns)]})[table_name]
    if result['total_missing'] > 0:
        raise InvalidValueError(
            f"Table '{table_name}' has missing values: {result['missing_columns']}"
        )


def _parse_int_keys(table_name, series):
    text = series.astype(str).str.strip()
    numbers = pd.to_numeric(text, errors='coerce')
    bad = numbers.isnull() | (numbers % 1 != 0)
    if bad.any():
        raise InvalidValueError(
            f"Table '{table_name}' has non-integer values in '{series.name}': "
            f"{series[bad].head(5).tolist()}"
        )
    return numbers.astype(np.int64)


def _parse_text(series):
    return series.astype(str).str.strip()


def _parse_dates(series):
    try:
        dates = pd.to_datetime(series, errors='raise')
    except (ValueError, TypeError) as e:
        raise InvalidValueError(f"Unparseable order_date values: {str(e)}") from e
    return dates.dt.normalize()


def _time_text(value):
    text = str(value).strip()
    if text.count(':') == 1:
        text += ':00'
    return text


def _parse_times(series):
    try:
        times = pd.to_timedelta(series.map(_time_text), errors='raise')
    except (ValueError, TypeError) as e:
        raise InvalidValueError(f"Unparseable order_time values: {str(e)}") from e

    out_of_range = (times < pd.Timedelta(0)) | (times >= _ONE_DAY)
    if out_of_range.any():
        raise InvalidValueError(
            f"order_time values outside a single day: {series[out_of_range].head(5).tolist()}"
        )
    return times


def parse_price(value):
    """
    Parse a price into an exact Decimal.

    Floats are read through their shortest repr so 12.75 stays 12.75.
    """
    try:
        if isinstance(value, Decimal):
            price = value
        elif isinstance(value, float):
            price = Decimal(repr(value))
        else:
            price = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidPriceError(f"Price {value!r} is not a number") from e

    if not price.is_finite():
        raise InvalidPriceError(f"Price {value!r} is not a finite number")

    try:
        exact = price == price.quantize(_PRICE_QUANTUM)
    except InvalidOperation as e:
        raise InvalidPriceError(f"Price {value!r} is out of range") from e
    if not exact:
        raise InvalidPriceError(
            f"Price {value!r} has more than {MONEY_PLACES} decimal places"
        )

    return price


def price_to_units(price):
    """Convert an exact Decimal price to integer money units."""
    return int(price.scaleb(MONEY_PLACES))


def normalize_orders(frame):
    _require_complete(ORDERS, frame, REQUIRED_COLUMNS[ORDERS])
    return pd.DataFrame({
        'order_id': _parse_int_keys(ORDERS, frame['order_id']),
        'order_date': _parse_dates(frame['order_date']),
        'order_time': _parse_times(frame['order_time']),
    }).reset_index(drop=True)


def normalize_order_details(frame):
    _require_complete(ORDER_DETAILS, frame, REQUIRED_COLUMNS[ORDER_DETAILS])

    quantity = pd.to_numeric(frame['quantity'].astype(str).str.strip(), errors='coerce')
    bad = quantity.isnull() | (quantity % 1 != 0)
    if bad.any():
        raise InvalidQuantityError(
            f"Quantities must be integers: {frame.loc[bad, 'quantity'].head(5).tolist()}"
        )

    return pd.DataFrame({
        'order_details_id': _parse_int_keys(ORDER_DETAILS, frame['order_details_id']),
        'order_id': _parse_int_keys(ORDER_DETAILS, frame['order_id']),
        'pizza_id': _parse_text(frame['pizza_id']),
        'quantity': quantity.astype(np.int64),
    }).reset_index(drop=True)


def normalize_pizzas(frame):
    _require_complete(PIZZAS, frame, REQUIRED_COLUMNS[PIZZAS])

    prices = [parse_price(value) for value in frame['price']]
    size = frame['size'].fillna('') if 'size' in frame.columns else ''

    pizzas = pd.DataFrame({
        'pizza_id': _parse_text(frame['pizza_id']),
        'pizza_type_id': _parse_text(frame['pizza_type_id']),
        'size': size,
        'price': pd.Series(prices, index=frame.index, dtype=object),
        'price_units': pd.Series(
            [price_to_units(price) for price in prices], index=frame.index, dtype=np.int64
        ),
    })
    pizzas['size'] = _parse_text(pizzas['size'])
    return pizzas.reset_index(drop=True)


def normalize_pizza_types(frame):
    _require_complete(PIZZA_TYPES, frame, REQUIRED_COLUMNS[PIZZA_TYPES])
    return pd.DataFrame({
        'pizza_type_id': _parse_text(frame['pizza_type_id']),
        'name': _parse_text(frame['name']),
        'category': _parse_text(frame['category']),
    }).reset_index(drop=True)


_NORMALIZERS = {
    ORDERS: normalize_orders,
    ORDER_DETAILS: normalize_order_details,
    PIZZAS: normalize_pizzas,
    PIZZA_TYPES: normalize_pizza_types,
}


def load_tables(orders, order_details, pizzas, pizza_types):
    """
    Normalise and validate the four input tables.

    Args:
        orders, order_details, pizzas, pizza_types: DataFrames, iterables of
            mappings, or iterables of the record dataclasses

    Returns:
        SalesTables: the normalised tables

    Raises:
        DataIntegrityError: on schema, value, quantity, price or key problems
    """
    raw = {
        ORDERS: orders,
        ORDER_DETAILS: order_details,
        PIZZAS: pizzas,
        PIZZA_TYPES: pizza_types,
    }

    normalized = {}
    for table_name in TABLE_NAMES:
        frame = to_frame(table_name, raw[table_name])
        normalized[table_name] = _NORMALIZERS[table_name](frame)
        logger.info(f"Normalised {len(normalized[table_name])} rows for '{table_name}'")

    tables = SalesTables(**normalized)
    validate_tables(tables)
    return tables


def read_csv_table(file_path):
    """
    Read one CSV file with every column as text.
    """
    logger.info(f"Loading data from {file_path}")

    if not os.path.exists(file_path):
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(file_path)

    df = pd.read_csv(file_path, dtype=str)
    logger.info(f"Loaded {len(df)} rows from {file_path}")

    missing_values = int(df.isnull().sum().sum())
    if missing_values > 0:
        logger.warning(f"Found {missing_values} missing values in {file_path}")

    return df


def load_csv_tables(input_dir):
    """
    Load the four source CSV files from a directory.

    Args:
        input_dir: Directory holding orders.csv, order_details.csv,
            pizzas.csv and pizza_types.csv

    Returns:
        SalesTables: the normalised tables
    """
    try:
        frames = {
            table_name: read_csv_table(os.path.join(input_dir, file_name))
            for table_name, file_name in CSV_FILES.items()
        }
        return load_tables(**frames)
    except Exception as e:
        logger.error(f"Failed to load CSV data from {input_dir}: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def load_database_tables(engine):
    """
    Load the four source tables through a SQLAlchemy engine.
    """
    try:
        frames = {}
        for table_name in TABLE_NAMES:
            frames[table_name] = pd.read_sql_table(table_name, engine, coerce_float=False)
            logger.info(f"Loaded {len(frames[table_name])} rows from table {table_name}")
        return load_tables(**frames)
    except SQLAlchemyError as e:
        logger.error(f"Database error while loading source tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise
    except Exception as e:
        logger.error(f"Failed to load source tables from database: {str(e)}")
        logger.error(traceback.format_exc())
        raise
