"""
Pizza sales analytics over one joined snapshot of the input tables.
"""
import logging

from pizza_analytics.reporting.assembler import frame_to_records
from pizza_analytics.transformation import calculations
from pizza_analytics.transformation.joins import join_order_data

logger = logging.getLogger(__name__)


class PizzaSalesAnalytics:
    """
    Reporting computations over the pizza sales tables.

    The join is resolved once on construction. Order counts, the hourly
    distribution and category counts read the base tables, so orders without
    lines and pizza types never sold are still counted. Everything else reads
    the joined snapshot. Every method returns a new value, so instances can be
    shared freely.

    Args:
        tables (SalesTables): normalised tables from ``load_tables``
        strict (bool): raise MissingReferenceError on unresolved foreign
            keys instead of dropping the affected rows
    """

    def __init__(self, tables, strict=True):
        self._tables = tables
        self._rows = join_order_data(tables, strict=strict)
        self.strict = strict

    @property
    def tables(self):
        return self._tables

    @property
    def rows(self):
        """A copy of the joined rows."""
        return self._rows.copy()

    def count_orders(self):
        return calculations.calculate_order_count(self._tables.orders)

    def total_revenue(self):
        return calculations.calculate_total_revenue(self._rows)

    def top_n_by_quantity(self, n):
        return frame_to_records(calculations.identify_top_pizzas_by_quantity(self._rows, n))

    def quantity_histogram(self):
        return frame_to_records(calculations.calculate_quantity_histogram(self._rows))

    def category_totals(self):
        return frame_to_records(calculations.calculate_category_quantities(self._rows))

    def hourly_distribution(self):
        return frame_to_records(calculations.calculate_hourly_distribution(self._tables.orders))

    def category_counts(self):
        return frame_to_records(calculations.calculate_category_pizza_counts(self._tables.pizza_types))

    def avg_daily_quantity(self):
        return calculations.calculate_avg_daily_quantity(self._rows)

    def top_n_by_revenue(self, n):
        return frame_to_records(calculations.identify_top_pizzas_by_revenue(self._rows, n))

    def revenue_percent_by_category(self):
        return frame_to_records(calculations.calculate_revenue_percent_by_category(self._rows))

    def cumulative_revenue_by_date(self):
        """Restartable iterable of CumulativePoint(order_date, cumulative_revenue)."""
        return calculations.calculate_cumulative_revenue(self._rows)

    def top_n_by_revenue_per_category(self, n):
        return frame_to_records(calculations.identify_top_pizzas_per_category(self._rows, n))

    def size_distribution(self):
        return frame_to_records(calculations.calculate_size_distribution(self._rows))

    def highest_priced_pizza(self):
        return calculations.identify_highest_priced_pizza(self._tables)
