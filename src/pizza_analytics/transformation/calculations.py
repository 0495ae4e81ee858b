"""
Business metrics calculations over the joined pizza sales rows.

Most functions take the output of ``join_order_data``. Order counts and the
hourly distribution also accept the ``orders`` table, and category counts the
``pizza_types`` table. Each returns a new DataFrame or scalar without
modifying its input. Money is summed on the integer ``revenue_units`` column
and rounded only when the result is built.
"""
import logging
import traceback
from decimal import Decimal

import pandas as pd

from pizza_analytics.errors import EmptyInputError
from pizza_analytics.models import MONEY_PLACES, CumulativePoint
from pizza_analytics.reporting.assembler import round_money, round_whole
from pizza_analytics.transformation.windows import PrefixScan, partitioned_rank

logger = logging.getLogger(__name__)

REVENUE_PLACES = 2
RANKED_REVENUE_PLACES = 0
PERCENT_PLACES = 2

_ONE_HOUR = pd.Timedelta(hours=1)


def _check_limit(n):
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ValueError(f"Row limit must be a non-negative integer, got {n!r}")


def calculate_order_count(orders_df):
    """Distinct number of orders in any frame with an ``order_id`` column."""
    return int(orders_df['order_id'].nunique())


def calculate_total_revenue(complete_orders_df):
    """Sum of price x quantity, rounded to cents."""
    return round_money(int(complete_orders_df['revenue_units'].sum()), REVENUE_PLACES)


def identify_top_pizzas_by_quantity(complete_orders_df, top_n):
    """
    Pizza names by total quantity sold, largest first, ties by name.
    """
    _check_limit(top_n)
    try:
        logger.info(f"Identifying top {top_n} pizzas by quantity")

        totals = complete_orders_df.groupby('name', as_index=False)['quantity'].sum()
        totals = totals.rename(columns={'quantity': 'total_quantity'})
        totals = totals.sort_values(
            ['total_quantity', 'name'], ascending=[False, True], kind='mergesort'
        ).head(top_n)

        return totals.reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error identifying top pizzas by quantity: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def calculate_quantity_histogram(complete_orders_df):
    """
    Number of order lines for each quantity value.
    """
    histogram = complete_orders_df.groupby('quantity').size().reset_index(name='line_count')
    return histogram.sort_values('quantity').reset_index(drop=True)


def calculate_category_quantities(complete_orders_df):
    """
    Total quantity sold per category, smallest first.
    """
    try:
        logger.info("Calculating quantity by category")

        totals = complete_orders_df.groupby('category', as_index=False)['quantity'].sum()
        totals = totals.rename(columns={'quantity': 'total_quantity'})
        totals = totals.sort_values(['total_quantity', 'category'], kind='mergesort')

        logger.info(f"Calculated quantities for {len(totals)} categories")
        return totals.reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error calculating category quantities: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def calculate_hourly_distribution(orders_df):
    """
    Distinct orders per hour of the day.
    """
    try:
        logger.info("Calculating order distribution by hour")

        hours = (orders_df['order_time'] // _ONE_HOUR).astype('int64')
        distribution = (
            orders_df.assign(hour=hours)
            .groupby('hour')['order_id']
            .nunique()
            .reset_index(name='order_count')
        )

        return distribution.sort_values('hour').reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error calculating hourly distribution: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def calculate_category_pizza_counts(pizza_types_df):
    """
    Distinct pizza types per category.
    """
    counts = (
        pizza_types_df.groupby('category')['pizza_type_id']
        .nunique()
        .reset_index(name='pizza_type_count')
    )
    return counts.sort_values('category').reset_index(drop=True)


def calculate_avg_daily_quantity(complete_orders_df):
    """
    Average of the per-day quantity totals, rounded to a whole pizza.

    Raises:
        EmptyInputError: when there are no rows to average
    """
    if complete_orders_df.empty:
        raise EmptyInputError("No order rows to average per day")

    order_count = complete_orders_df.groupby('order_date')['quantity'].sum()
    return round_whole(Decimal(int(order_count.sum())) / Decimal(len(order_count)))


def identify_top_pizzas_by_revenue(complete_orders_df, top_n):
    """
    Pizza names by revenue rounded to whole units, largest first.

    Pizzas that round to the same revenue are ordered by name.
    """
    _check_limit(top_n)
    try:
        logger.info(f"Identifying top {top_n} pizzas by revenue")

        revenue = complete_orders_df.groupby('name', as_index=False)['revenue_units'].sum()
        revenue = revenue.assign(revenue=[
            round_money(int(units), RANKED_REVENUE_PLACES) for units in revenue['revenue_units']
        ])
        revenue = revenue.sort_values(
            ['revenue', 'name'], ascending=[False, True], kind='mergesort'
        ).head(top_n)

        return revenue[['name', 'revenue']].reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error identifying top pizzas by revenue: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def calculate_revenue_percent_by_category(complete_orders_df):
    """
    Share of total revenue per category, as a percentage.

    The total is computed once, rounded to cents as a reported total would
    be, and every category is divided by it.

    Raises:
        EmptyInputError: when there is no revenue to apportion
    """
    if complete_orders_df.empty:
        raise EmptyInputError("No order rows to compute revenue shares from")

    total_sales = calculate_total_revenue(complete_orders_df)
    if total_sales == 0:
        raise EmptyInputError("Total revenue is zero; revenue shares are undefined")

    try:
        logger.info("Calculating revenue percentage by category")

        by_category = complete_orders_df.groupby('category', as_index=False)['revenue_units'].sum()
        by_category = by_category.sort_values(
            ['revenue_units', 'category'], ascending=[False, True], kind='mergesort'
        )

        by_category = by_category.assign(revenue_percent=[
            round_money(Decimal(int(units)).scaleb(-MONEY_PLACES) * 100 / total_sales, PERCENT_PLACES)
            for units in by_category['revenue_units']
        ])
        return by_category[['category', 'revenue_percent']].reset_index(drop=True)
    except Exception as e:
        logger.error(f"Error calculating revenue percentages: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def _cumulative_point(order_date, units):
    return CumulativePoint(order_date, round_money(units, REVENUE_PLACES))


def calculate_cumulative_revenue(complete_orders_df):
    """
    Running revenue total by order date.

    Returns:
        PrefixScan: restartable iterable of CumulativePoint(order_date,
            cumulative_revenue), oldest date first
    """
    sales = complete_orders_df.groupby('order_date', sort=True)['revenue_units'].sum()
    return PrefixScan(
        [timestamp.date() for timestamp in sales.index],
        [int(units) for units in sales.tolist()],
        finish=_cumulative_point
    )


def identify_top_pizzas_per_category(complete_orders_df, top_n):
    """
    Top pizzas by revenue within each category.

    Pizzas with equal revenue share a rank. Ties at the cut are all kept, so
    a category may return more than ``top_n`` rows; ranks never exceed
    ``top_n``.
    """
    _check_limit(top_n)
    try:
        logger.info(f"Identifying top {top_n} pizzas per category by revenue")

        revenue = complete_orders_df.groupby(['category', 'name'], as_index=False)['revenue_units'].sum()
        ranked = partitioned_rank(
            revenue, 'category', 'revenue_units', limit=top_n, tie_breaker='name'
        )

        ranked = ranked.assign(
            revenue=[round_money(int(units), REVENUE_PLACES) for units in ranked['revenue_units']]
        )
        return ranked[['category', 'name', 'revenue', 'rank']]
    except Exception as e:
        logger.error(f"Error ranking pizzas per category: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def calculate_size_distribution(complete_orders_df):
    """
    Order lines and quantity per pizza size, most ordered first.
    """
    sizes = complete_orders_df.groupby('size', as_index=False).agg(
        line_count=('quantity', 'count'),
        total_quantity=('quantity', 'sum')
    )
    sizes = sizes.sort_values(
        ['total_quantity', 'size'], ascending=[False, True], kind='mergesort'
    )
    return sizes.reset_index(drop=True)


def identify_highest_priced_pizza(tables):
    """
    The most expensive pizza on the menu, ties broken by name.

    Raises:
        EmptyInputError: when the menu has no pizzas
    """
    catalogue = pd.merge(tables.pizzas, tables.pizza_types, on='pizza_type_id', how='inner')
    if catalogue.empty:
        raise EmptyInputError("No pizzas with a known pizza type")

    top = catalogue.sort_values(
        ['price_units', 'name', 'size'], ascending=[False, True, True], kind='mergesort'
    ).iloc[0]
    return {'name': top['name'], 'size': top['size'], 'price': top['price']}
