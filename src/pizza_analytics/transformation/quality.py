"""
Data quality checks for the pizza sales tables.
"""
import logging
import traceback

import numpy as np

from pizza_analytics.errors import (
    DuplicateKeyError,
    InvalidPriceError,
    InvalidQuantityError,
)
from pizza_analytics.models import (
    FOREIGN_KEYS,
    ORDER_DETAILS,
    PIZZAS,
    PRIMARY_KEYS,
    SalesTables,
)

logger = logging.getLogger(__name__)

EXAMPLE_LIMIT = 10


def _as_dict(tables):
    if isinstance(tables, SalesTables):
        return tables._asdict()
    return dict(tables)


def run_data_quality_checks(tables):
    """
    Run every quality check and return the combined findings.

    The checks only report; use ``validate_tables`` to raise on problems.
    """
    try:
        logger.info("Running data quality checks")

        quality_results = {
            'missing_values': check_missing_values(tables),
            'duplicate_keys': check_duplicate_keys(tables),
            'value_ranges': check_value_ranges(tables),
            'referential_integrity': check_referential_integrity(tables),
        }

        total_issues = count_issues(quality_results)
        if total_issues > 0:
            logger.warning(f"Found a total of {total_issues} data quality issues")
        else:
            logger.info("All data quality checks passed")

        return quality_results
    except Exception as e:
        logger.error(f"Error running data quality checks: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def count_issues(quality_results):
    """Sum the issue counts of a ``run_data_quality_checks`` result."""
    total = 0
    for result in quality_results['missing_values'].values():
        total += result['total_missing']
    for result in quality_results['duplicate_keys'].values():
        total += result['duplicate_count']
    for columns in quality_results['value_ranges'].values():
        for result in columns.values():
            total += result['invalid_count']
    for result in quality_results['referential_integrity'].values():
        total += result['orphaned_count']
    return total


def check_missing_values(tables):
    """
    Check for missing values in each table.
    """
    results = {}

    for table_name, df in _as_dict(tables).items():
        missing_by_column = df.isnull().sum()
        total_missing = int(missing_by_column.sum())

        missing_columns = {
            col: int(count) for col, count in missing_by_column[missing_by_column > 0].items()
        }

        results[table_name] = {
            'total_missing': total_missing,
            'missing_columns': missing_columns
        }

        if total_missing > 0:
            logger.warning(f"Table '{table_name}' has {total_missing} missing values")
            for col, count in missing_columns.items():
                logger.warning(f"  - Column '{col}': {count} missing values")

    return results


def check_duplicate_keys(tables):
    """
    Check for duplicate primary keys in each table.
    """
    results = {}

    for table_name, df in _as_dict(tables).items():
        key = PRIMARY_KEYS.get(table_name)
        if key is None or key not in df.columns:
            continue

        duplicates = df.loc[df.duplicated(subset=[key], keep=False), key]
        duplicate_count = len(duplicates)

        results[table_name] = {
            'key': key,
            'duplicate_count': duplicate_count,
            'duplicate_keys': duplicates.drop_duplicates().head(EXAMPLE_LIMIT).tolist()
        }

        if duplicate_count > 0:
            logger.warning(f"Table '{table_name}' has {duplicate_count} rows with duplicate '{key}'")

    return results


def check_value_ranges(tables):
    """
    Check for quantities and prices outside their allowed ranges.
    """
    results = {}

    range_checks = {
        ORDER_DETAILS: {
            'quantity': lambda x: x > 0,
        },
        PIZZAS: {
            'price_units': lambda x: x >= 0,
        }
    }

    for table_name, df in _as_dict(tables).items():
        if table_name not in range_checks:
            continue

        table_results = {}
        for column, condition in range_checks[table_name].items():
            if column not in df.columns:
                continue

            invalid_mask = ~condition(df[column].to_numpy())
            invalid_count = int(np.count_nonzero(invalid_mask))

            table_results[column] = {
                'invalid_count': invalid_count,
                'invalid_examples': df.loc[invalid_mask, column].head(5).tolist()
            }

            if invalid_count > 0:
                logger.warning(f"Table '{table_name}' has {invalid_count} invalid values in column '{column}'")

        results[table_name] = table_results

    return results


def check_referential_integrity(tables):
    """
    Check that every foreign key resolves against its parent table.
    """
    results = {}
    frames = _as_dict(tables)

    for table, key, ref_table, ref_key in FOREIGN_KEYS:
        relationship = f"{table}.{key} -> {ref_table}.{ref_key}"
        if table not in frames or ref_table not in frames:
            continue

        child = frames[table]
        orphan_mask = ~child[key].isin(frames[ref_table][ref_key])
        orphaned = child.loc[orphan_mask, key].drop_duplicates()

        results[relationship] = {
            'orphaned_count': int(orphan_mask.sum()),
            'orphaned_examples': orphaned.head(EXAMPLE_LIMIT).tolist()
        }

        if results[relationship]['orphaned_count'] > 0:
            logger.warning(
                f"Referential integrity issue: {results[relationship]['orphaned_count']} rows in "
                f"{table}.{key} have no matching {ref_table}.{ref_key}"
            )

    return results


def validate_tables(tables):
    """
    Raise on duplicate keys and out-of-range quantities or prices.

    Referential integrity is left to the join, which either raises or drops
    depending on its ``strict`` flag.
    """
    for table_name, result in check_duplicate_keys(tables).items():
        if result['duplicate_count'] > 0:
            raise DuplicateKeyError(table_name, result['key'], result['duplicate_keys'])

    ranges = check_value_ranges(tables)

    quantity = ranges.get(ORDER_DETAILS, {}).get('quantity')
    if quantity and quantity['invalid_count'] > 0:
        raise InvalidQuantityError(
            f"{quantity['invalid_count']} order details have a quantity <= 0: "
            f"{quantity['invalid_examples']}"
        )

    price = ranges.get(PIZZAS, {}).get('price_units')
    if price and price['invalid_count'] > 0:
        frames = _as_dict(tables)
        pizzas = frames[PIZZAS]
        negative = pizzas.loc[pizzas['price_units'] < 0, 'pizza_id'].head(5).tolist()
        raise InvalidPriceError(
            f"{price['invalid_count']} pizzas have a negative price: {negative}"
        )

    return tables
