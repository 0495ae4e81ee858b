"""
Record types and table schema for the pizza sales data.

Inputs may be handed to the loader as these dataclasses, as plain mappings
or as DataFrames; the column tuples below are the fixed schema every
normalised table follows.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import NamedTuple

import pandas as pd

# Money is summed as integers in units of 10**-MONEY_PLACES
MONEY_PLACES = 4

ORDERS = 'orders'
ORDER_DETAILS = 'order_details'
PIZZAS = 'pizzas'
PIZZA_TYPES = 'pizza_types'

TABLE_NAMES = (ORDERS, ORDER_DETAILS, PIZZAS, PIZZA_TYPES)

ORDER_COLUMNS = ('order_id', 'order_date', 'order_time')
ORDER_DETAIL_COLUMNS = ('order_details_id', 'order_id', 'pizza_id', 'quantity')
PIZZA_COLUMNS = ('pizza_id', 'pizza_type_id', 'size', 'price')
PIZZA_TYPE_COLUMNS = ('pizza_type_id', 'name', 'category')

TABLE_COLUMNS = {
    ORDERS: ORDER_COLUMNS,
    ORDER_DETAILS: ORDER_DETAIL_COLUMNS,
    PIZZAS: PIZZA_COLUMNS,
    PIZZA_TYPES: PIZZA_TYPE_COLUMNS,
}

# size is optional on input and defaults to an empty string
REQUIRED_COLUMNS = {
    ORDERS: ORDER_COLUMNS,
    ORDER_DETAILS: ORDER_DETAIL_COLUMNS,
    PIZZAS: ('pizza_id', 'pizza_type_id', 'price'),
    PIZZA_TYPES: PIZZA_TYPE_COLUMNS,
}

PRIMARY_KEYS = {
    ORDERS: 'order_id',
    ORDER_DETAILS: 'order_details_id',
    PIZZAS: 'pizza_id',
    PIZZA_TYPES: 'pizza_type_id',
}

# (child table, child column, parent table, parent column)
FOREIGN_KEYS = (
    (ORDER_DETAILS, 'order_id', ORDERS, 'order_id'),
    (ORDER_DETAILS, 'pizza_id', PIZZAS, 'pizza_id'),
    (PIZZAS, 'pizza_type_id', PIZZA_TYPES, 'pizza_type_id'),
)

JOINED_COLUMNS = (
    'order_details_id',
    'order_id',
    'order_date',
    'order_time',
    'pizza_id',
    'pizza_type_id',
    'name',
    'category',
    'size',
    'price',
    'quantity',
    'price_units',
    'revenue_units',
)


@dataclass(frozen=True)
class Order:
    order_id: int
    order_date: object
    order_time: object


@dataclass(frozen=True)
class OrderDetail:
    order_details_id: int
    order_id: int
    pizza_id: str
    quantity: int


@dataclass(frozen=True)
class Pizza:
    pizza_id: str
    pizza_type_id: str
    price: Decimal
    size: str = ''


@dataclass(frozen=True)
class PizzaType:
    pizza_type_id: str
    name: str
    category: str


class SalesTables(NamedTuple):
    """The four normalised input tables of one analysis run."""

    orders: pd.DataFrame
    order_details: pd.DataFrame
    pizzas: pd.DataFrame
    pizza_types: pd.DataFrame

    def row_counts(self):
        return {name: len(getattr(self, name)) for name in TABLE_NAMES}


class CumulativePoint(NamedTuple):
    order_date: object
    cumulative_revenue: Decimal
