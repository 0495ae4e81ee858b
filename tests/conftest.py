import os
from datetime import date, time
from decimal import Decimal

import pandas as pd
import pytest

from pizza_analytics.analytics import PizzaSalesAnalytics
from pizza_analytics.ingestion.loader import load_tables
from pizza_analytics.models import Order, OrderDetail, Pizza, PizzaType

# Hand-checked figures for the fixture below:
#   revenue by pizza: Alpha 30.00, Bravo 25.00, Charlie 60.75, Delta 24.00, Echo 10.00
#   quantity by pizza: Alpha 3, Bravo 2, Charlie 3, Delta 3, Echo 2
#   revenue by day: 2024-01-01 76.75, 2024-01-02 20.00, 2024-01-03 53.00
#   total revenue 149.75


@pytest.fixture
def pizza_type_records():
    return [
        PizzaType('alpha', 'Alpha', 'Classic'),
        PizzaType('bravo', 'Bravo', 'Classic'),
        PizzaType('charlie', 'Charlie', 'Veggie'),
        PizzaType('delta', 'Delta', 'Veggie'),
        PizzaType('echo', 'Echo', 'Classic'),
    ]


@pytest.fixture
def pizza_records():
    return [
        Pizza('alpha_m', 'alpha', Decimal('10.00'), 'M'),
        Pizza('bravo_m', 'bravo', Decimal('12.50'), 'M'),
        Pizza('charlie_l', 'charlie', Decimal('20.25'), 'L'),
        Pizza('delta_s', 'delta', Decimal('8.00'), 'S'),
        Pizza('echo_m', 'echo', Decimal('5.00'), 'M'),
    ]


@pytest.fixture
def order_records():
    return [
        Order(1, date(2024, 1, 1), time(11, 15)),
        Order(2, date(2024, 1, 1), time(12, 30)),
        Order(3, date(2024, 1, 2), time(12, 45)),
        Order(4, date(2024, 1, 3), time(18, 5)),
    ]


@pytest.fixture
def order_detail_records():
    return [
        OrderDetail(1, 1, 'alpha_m', 2),
        OrderDetail(2, 1, 'charlie_l', 1),
        OrderDetail(3, 2, 'bravo_m', 1),
        OrderDetail(4, 2, 'delta_s', 3),
        OrderDetail(5, 3, 'alpha_m', 1),
        OrderDetail(6, 3, 'echo_m', 2),
        OrderDetail(7, 4, 'charlie_l', 2),
        OrderDetail(8, 4, 'bravo_m', 1),
    ]


@pytest.fixture
def records(order_records, order_detail_records, pizza_records, pizza_type_records):
    return {
        'orders': order_records,
        'order_details': order_detail_records,
        'pizzas': pizza_records,
        'pizza_types': pizza_type_records,
    }


@pytest.fixture
def tables(records):
    return load_tables(**records)


@pytest.fixture
def analytics(tables):
    return PizzaSalesAnalytics(tables)


@pytest.fixture
def csv_dir(tmp_path, records):
    """The fixture data written out as the four source CSV files."""
    input_dir = tmp_path / 'input'
    input_dir.mkdir()

    frames = {
        'orders.csv': pd.DataFrame([
            {'order_id': o.order_id, 'order_date': o.order_date.isoformat(),
             'order_time': o.order_time.strftime('%H:%M:%S')}
            for o in records['orders']
        ]),
        'order_details.csv': pd.DataFrame([vars(d) for d in records['order_details']]),
        'pizzas.csv': pd.DataFrame([
            {'pizza_id': p.pizza_id, 'pizza_type_id': p.pizza_type_id,
             'size': p.size, 'price': str(p.price)}
            for p in records['pizzas']
        ]),
        'pizza_types.csv': pd.DataFrame([vars(t) for t in records['pizza_types']]),
    }
    for file_name, frame in frames.items():
        frame.to_csv(os.path.join(input_dir, file_name), index=False)

    return input_dir


@pytest.fixture
def config_file(tmp_path, csv_dir):
    path = tmp_path / 'config.ini'
    path.write_text(
        "[DATABASE]\n"
        "type = sqlite\n"
        f"name = {tmp_path / 'pizza_sales.db'}\n"
        "\n"
        "[LOGGING]\n"
        "level = INFO\n"
        f"file = {tmp_path / 'logs' / 'pipeline.log'}\n"
        "\n"
        "[PATHS]\n"
        f"input_dir = {csv_dir}\n"
        f"output_dir = {tmp_path / 'output'}\n"
        "\n"
        "[PIPELINE]\n"
        "source = csv\n"
        "strict_references = true\n"
        "top_n = 5\n"
        "top_n_revenue = 3\n"
        "top_n_per_category = 2\n"
    )
    return path
