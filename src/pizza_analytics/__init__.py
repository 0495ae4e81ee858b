"""
Pizza sales analytics: reporting computations over orders, order details,
pizzas and pizza types.
"""
from pizza_analytics.analytics import PizzaSalesAnalytics
from pizza_analytics.ingestion.loader import load_csv_tables, load_database_tables, load_tables
from pizza_analytics.models import Order, OrderDetail, Pizza, PizzaType, SalesTables

__version__ = '0.1.0'

__all__ = [
    'Order',
    'OrderDetail',
    'Pizza',
    'PizzaSalesAnalytics',
    'PizzaType',
    'SalesTables',
    'load_csv_tables',
    'load_database_tables',
    'load_tables',
]
