"""
Report assembly: final rounding and record formatting of derived tables.
"""
import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal

import numpy as np
import pandas as pd

from pizza_analytics.errors import EmptyInputError
from pizza_analytics.models import MONEY_PLACES, CumulativePoint

logger = logging.getLogger(__name__)


def round_money(value, places=2):
    """
    Round half away from zero to ``places`` decimals.

    Integers are read as money units (ten-thousandths); anything else is
    converted to Decimal first.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, np.integer)):
        amount = Decimal(int(value)).scaleb(-MONEY_PLACES)
    else:
        amount = Decimal(str(value))
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_whole(value):
    """Round half away from zero to an int."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def frame_to_records(frame):
    """Convert a DataFrame to a list of plain dicts in row order."""
    records = []
    for row in frame.to_dict(orient='records'):
        records.append({key: _plain(value) for key, value in row.items()})
    return records


def _plain(value):
    # numpy scalars and pandas timestamps become their Python counterparts
    if isinstance(value, pd.Timestamp):
        return value.date()
    if hasattr(value, 'item') and not isinstance(value, Decimal):
        return value.item()
    return value


def summary_frame(analytics):
    """Collect the scalar metrics as a (metric, value) table."""
    rows = [
        ('order_count', analytics.count_orders()),
        ('total_revenue', analytics.total_revenue()),
        ('avg_daily_quantity', _or_none(analytics.avg_daily_quantity)),
    ]
    return pd.DataFrame(rows, columns=['metric', 'value'])


def _or_none(operation, *args):
    try:
        return operation(*args)
    except EmptyInputError as e:
        logger.warning(f"{operation.__name__} is undefined: {str(e)}")
        return None


def assemble_report(analytics, top_n=5, top_n_revenue=3, top_n_per_category=3):
    """
    Compute every report once and return them as named DataFrames.

    Args:
        analytics (PizzaSalesAnalytics): analytics over one joined snapshot
        top_n (int): rows kept by the quantity ranking
        top_n_revenue (int): rows kept by the revenue ranking
        top_n_per_category (int): rank threshold within each category

    Returns:
        OrderedDict: report name -> DataFrame
    """
    logger.info("Assembling report tables")

    report = OrderedDict()
    report['summary'] = summary_frame(analytics)

    highest = _or_none(analytics.highest_priced_pizza)
    if highest is not None:
        report['highest_priced_pizza'] = pd.DataFrame([highest])

    report['top_pizzas_by_quantity'] = pd.DataFrame(
        analytics.top_n_by_quantity(top_n), columns=['name', 'total_quantity']
    )
    report['quantity_histogram'] = pd.DataFrame(
        analytics.quantity_histogram(), columns=['quantity', 'line_count']
    )
    report['size_distribution'] = pd.DataFrame(
        analytics.size_distribution(), columns=['size', 'line_count', 'total_quantity']
    )
    report['category_totals'] = pd.DataFrame(
        analytics.category_totals(), columns=['category', 'total_quantity']
    )
    report['hourly_distribution'] = pd.DataFrame(
        analytics.hourly_distribution(), columns=['hour', 'order_count']
    )
    report['category_counts'] = pd.DataFrame(
        analytics.category_counts(), columns=['category', 'pizza_type_count']
    )
    report['top_pizzas_by_revenue'] = pd.DataFrame(
        analytics.top_n_by_revenue(top_n_revenue), columns=['name', 'revenue']
    )

    percentages = _or_none(analytics.revenue_percent_by_category)
    if percentages is not None:
        report['revenue_percent_by_category'] = pd.DataFrame(
            percentages, columns=['category', 'revenue_percent']
        )

    report['cumulative_revenue'] = pd.DataFrame(
        list(analytics.cumulative_revenue_by_date()), columns=list(CumulativePoint._fields)
    )
    report['top_pizzas_per_category'] = pd.DataFrame(
        analytics.top_n_by_revenue_per_category(top_n_per_category),
        columns=['category', 'name', 'revenue', 'rank']
    )

    logger.info(f"Assembled {len(report)} report tables")
    return report
