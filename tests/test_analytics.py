from datetime import date, time
from decimal import Decimal

import pytest

from pizza_analytics.analytics import PizzaSalesAnalytics
from pizza_analytics.errors import EmptyInputError
from pizza_analytics.ingestion.loader import load_tables
from pizza_analytics.models import CumulativePoint, Order, OrderDetail, Pizza, PizzaType


def build_analytics(pizzas, details, orders=None, pizza_types=None):
    orders = orders or [Order(1, date(2024, 1, 1), time(12, 0))]
    pizza_types = pizza_types or [
        PizzaType(p.pizza_type_id, p.pizza_type_id.upper(), 'Classic') for p in pizzas
    ]
    return PizzaSalesAnalytics(load_tables(orders, details, pizzas, pizza_types))


def test_count_orders(analytics):
    assert analytics.count_orders() == 4


def test_total_revenue(analytics):
    assert analytics.total_revenue() == Decimal('149.75')


def test_total_revenue_matches_elementwise_sum(analytics, records):
    prices = {p.pizza_id: p.price for p in records['pizzas']}
    expected = sum(prices[d.pizza_id] * d.quantity for d in records['order_details'])
    assert analytics.total_revenue() == expected


def test_single_order_example():
    analytics = build_analytics(
        [Pizza('a', 'a', Decimal('10.00'), 'M')],
        [OrderDetail(1, 1, 'a', 2)],
    )
    assert analytics.total_revenue() == Decimal('20.00')
    assert analytics.avg_daily_quantity() == 2


def test_top_n_by_quantity_breaks_ties_by_name(analytics):
    assert analytics.top_n_by_quantity(3) == [
        {'name': 'Alpha', 'total_quantity': 3},
        {'name': 'Charlie', 'total_quantity': 3},
        {'name': 'Delta', 'total_quantity': 3},
    ]


def test_top_n_by_quantity_is_bounded_and_sorted(analytics):
    result = analytics.top_n_by_quantity(5)
    quantities = [row['total_quantity'] for row in result]
    assert len(result) <= 5
    assert quantities == sorted(quantities, reverse=True)
    assert [row['name'] for row in result[3:]] == ['Bravo', 'Echo']


def test_top_n_rejects_negative_limit(analytics):
    with pytest.raises(ValueError):
        analytics.top_n_by_quantity(-1)


def test_quantity_histogram(analytics):
    assert analytics.quantity_histogram() == [
        {'quantity': 1, 'line_count': 4},
        {'quantity': 2, 'line_count': 3},
        {'quantity': 3, 'line_count': 1},
    ]


def test_category_totals_ascending(analytics):
    assert analytics.category_totals() == [
        {'category': 'Veggie', 'total_quantity': 6},
        {'category': 'Classic', 'total_quantity': 7},
    ]


def test_hourly_distribution_counts_distinct_orders(analytics):
    assert analytics.hourly_distribution() == [
        {'hour': 11, 'order_count': 1},
        {'hour': 12, 'order_count': 2},
        {'hour': 18, 'order_count': 1},
    ]


def test_category_counts(analytics):
    assert analytics.category_counts() == [
        {'category': 'Classic', 'pizza_type_count': 3},
        {'category': 'Veggie', 'pizza_type_count': 2},
    ]


def test_avg_daily_quantity_rounds_to_whole_pizzas(analytics):
    # daily totals 7, 3, 3
    assert analytics.avg_daily_quantity() == 4


def test_avg_daily_quantity_rounds_half_up():
    analytics = build_analytics(
        [Pizza('a', 'a', Decimal('1.00'), 'M')],
        [OrderDetail(1, 1, 'a', 2), OrderDetail(2, 2, 'a', 3)],
        orders=[
            Order(1, date(2024, 1, 1), time(12, 0)),
            Order(2, date(2024, 1, 2), time(12, 0)),
        ],
    )
    assert analytics.avg_daily_quantity() == 3


def test_top_n_by_revenue(analytics):
    assert analytics.top_n_by_revenue(3) == [
        {'name': 'Charlie', 'revenue': Decimal('61')},
        {'name': 'Alpha', 'revenue': Decimal('30')},
        {'name': 'Bravo', 'revenue': Decimal('25')},
    ]


def test_top_n_by_revenue_ties_are_ordered_by_name():
    analytics = build_analytics(
        [
            Pizza('z', 'z', Decimal('7.50'), 'M'),
            Pizza('y', 'y', Decimal('15.00'), 'M'),
            Pizza('x', 'x', Decimal('1.00'), 'M'),
        ],
        [OrderDetail(1, 1, 'z', 2), OrderDetail(2, 1, 'y', 1), OrderDetail(3, 1, 'x', 1)],
    )
    assert analytics.top_n_by_revenue(2) == [
        {'name': 'Y', 'revenue': Decimal('15')},
        {'name': 'Z', 'revenue': Decimal('15')},
    ]


def test_revenue_is_rounded_half_away_from_zero():
    analytics = build_analytics(
        [Pizza('a', 'a', Decimal('2.005'), 'M'), Pizza('b', 'b', Decimal('2.5'), 'M')],
        [OrderDetail(1, 1, 'a', 1), OrderDetail(2, 1, 'b', 1)],
    )
    assert analytics.total_revenue() == Decimal('4.51')
    assert analytics.top_n_by_revenue(1) == [{'name': 'B', 'revenue': Decimal('3')}]


def test_revenue_percent_by_category(analytics):
    assert analytics.revenue_percent_by_category() == [
        {'category': 'Veggie', 'revenue_percent': Decimal('56.59')},
        {'category': 'Classic', 'revenue_percent': Decimal('43.41')},
    ]


def test_revenue_percent_sums_to_one_hundred(analytics):
    result = analytics.revenue_percent_by_category()
    total = sum(row['revenue_percent'] for row in result)
    assert abs(total - 100) <= Decimal('0.01') * len(result)


def test_cumulative_revenue_by_date(analytics):
    assert list(analytics.cumulative_revenue_by_date()) == [
        CumulativePoint(date(2024, 1, 1), Decimal('76.75')),
        CumulativePoint(date(2024, 1, 2), Decimal('96.75')),
        CumulativePoint(date(2024, 1, 3), Decimal('149.75')),
    ]


def test_cumulative_revenue_is_restartable_and_non_decreasing(analytics):
    series = analytics.cumulative_revenue_by_date()
    first = list(series)
    second = list(series)

    assert first == second
    totals = [point.cumulative_revenue for point in first]
    assert totals == sorted(totals)
    assert totals[-1] == analytics.total_revenue()


def test_top_n_by_revenue_per_category(analytics):
    assert analytics.top_n_by_revenue_per_category(2) == [
        {'category': 'Classic', 'name': 'Alpha', 'revenue': Decimal('30.00'), 'rank': 1},
        {'category': 'Classic', 'name': 'Bravo', 'revenue': Decimal('25.00'), 'rank': 2},
        {'category': 'Veggie', 'name': 'Charlie', 'revenue': Decimal('60.75'), 'rank': 1},
        {'category': 'Veggie', 'name': 'Delta', 'revenue': Decimal('24.00'), 'rank': 2},
    ]


def test_top_n_by_revenue_per_category_bounds(analytics):
    result = analytics.top_n_by_revenue_per_category(3)
    by_category = {}
    for row in result:
        by_category.setdefault(row['category'], []).append(row)

    for rows in by_category.values():
        assert len(rows) <= 3
        revenues = [row['revenue'] for row in rows]
        assert revenues == sorted(revenues, reverse=True)


def test_top_n_by_revenue_per_category_uses_competition_ranking():
    analytics = build_analytics(
        [
            Pizza('w', 'w', Decimal('10.00'), 'M'),
            Pizza('x', 'x', Decimal('10.00'), 'M'),
            Pizza('y', 'y', Decimal('5.00'), 'M'),
            Pizza('z', 'z', Decimal('1.00'), 'M'),
        ],
        [OrderDetail(i, 1, pizza_id, 1) for i, pizza_id in enumerate('wxyz', start=1)],
    )
    result = analytics.top_n_by_revenue_per_category(3)
    assert [(row['name'], row['rank']) for row in result] == [('W', 1), ('X', 1), ('Y', 3)]

    result = analytics.top_n_by_revenue_per_category(2)
    assert [(row['name'], row['rank']) for row in result] == [('W', 1), ('X', 1)]


def test_size_distribution(analytics):
    assert analytics.size_distribution() == [
        {'size': 'M', 'line_count': 5, 'total_quantity': 7},
        {'size': 'L', 'line_count': 2, 'total_quantity': 3},
        {'size': 'S', 'line_count': 1, 'total_quantity': 3},
    ]


def test_highest_priced_pizza(analytics):
    assert analytics.highest_priced_pizza() == {
        'name': 'Charlie', 'size': 'L', 'price': Decimal('20.25')
    }


def test_operations_do_not_modify_the_snapshot(analytics):
    before = analytics.rows
    analytics.top_n_by_revenue_per_category(1)
    analytics.revenue_percent_by_category()
    list(analytics.cumulative_revenue_by_date())
    assert analytics.rows.equals(before)


def test_empty_input():
    analytics = PizzaSalesAnalytics(load_tables([], [], [], []))

    assert analytics.count_orders() == 0
    assert analytics.total_revenue() == Decimal('0.00')
    assert analytics.top_n_by_quantity(5) == []
    assert analytics.top_n_by_revenue_per_category(3) == []
    assert list(analytics.cumulative_revenue_by_date()) == []

    with pytest.raises(EmptyInputError):
        analytics.avg_daily_quantity()
    with pytest.raises(EmptyInputError):
        analytics.revenue_percent_by_category()
    with pytest.raises(EmptyInputError):
        analytics.highest_priced_pizza()


def test_zero_revenue_has_no_percentages():
    analytics = build_analytics(
        [Pizza('free', 'free', Decimal('0'), 'M')],
        [OrderDetail(1, 1, 'free', 1)],
    )
    with pytest.raises(EmptyInputError):
        analytics.revenue_percent_by_category()


def test_base_table_counts_include_unsold_orders_and_pizza_types():
    analytics = build_analytics(
        [Pizza('a', 'a', Decimal('9.00'), 'M'), Pizza('b', 'b', Decimal('14.00'), 'L')],
        [OrderDetail(1, 1, 'a', 1)],
        orders=[
            Order(1, date(2024, 1, 1), time(11, 0)),
            Order(2, date(2024, 1, 1), time(19, 30)),
        ],
    )

    assert analytics.count_orders() == 2
    assert analytics.hourly_distribution() == [
        {'hour': 11, 'order_count': 1},
        {'hour': 19, 'order_count': 1},
    ]
    assert analytics.category_counts() == [{'category': 'Classic', 'pizza_type_count': 2}]
    assert analytics.highest_priced_pizza()['name'] == 'B'
    assert analytics.total_revenue() == Decimal('9.00')


def test_top_n_by_revenue_orders_equal_rounded_revenue_by_name():
    analytics = build_analytics(
        [Pizza('a', 'a', Decimal('10.20'), 'M'), Pizza('b', 'b', Decimal('10.40'), 'M')],
        [OrderDetail(1, 1, 'a', 1), OrderDetail(2, 1, 'b', 1)],
    )
    assert analytics.top_n_by_revenue(2) == [
        {'name': 'A', 'revenue': Decimal('10')},
        {'name': 'B', 'revenue': Decimal('10')},
    ]
    assert analytics.top_n_by_revenue(1) == [{'name': 'A', 'revenue': Decimal('10')}]
