"""
Join resolution for the pizza sales tables.
"""
import logging

import pandas as pd

from pizza_analytics.errors import MissingReferenceError
from pizza_analytics.models import JOINED_COLUMNS
from pizza_analytics.transformation.quality import check_referential_integrity

logger = logging.getLogger(__name__)


def join_order_data(tables, strict=True):
    """
    Join order details with their orders, pizzas and pizza types.

    Inner-join semantics throughout. With ``strict`` an unresolved foreign
    key raises MissingReferenceError; otherwise the affected rows are dropped
    and the drop is logged.

    Args:
        tables (SalesTables): normalised input tables
        strict (bool): raise instead of dropping rows with missing references

    Returns:
        DataFrame: one row per order detail, in order_details input order
    """
    logger.info("Joining orders, order_details, pizzas and pizza_types tables")

    integrity = check_referential_integrity(tables)
    for relationship, result in integrity.items():
        if result['orphaned_count'] == 0:
            continue
        if strict:
            raise MissingReferenceError(
                relationship, result['orphaned_count'], result['orphaned_examples']
            )
        logger.warning(
            f"Dropping {result['orphaned_count']} rows with unresolved {relationship}"
        )

    # First attach pizza types to pizzas
    pizzas_with_types = pd.merge(
        tables.pizzas,
        tables.pizza_types,
        on='pizza_type_id',
        how='inner'
    )

    # Then attach orders and pizzas to each detail line
    details = tables.order_details.assign(_position=range(len(tables.order_details)))
    complete_orders = pd.merge(
        details,
        tables.orders,
        on='order_id',
        how='inner'
    )
    complete_orders = pd.merge(
        complete_orders,
        pizzas_with_types,
        on='pizza_id',
        how='inner'
    )

    complete_orders = complete_orders.sort_values('_position', kind='stable').reset_index(drop=True)
    complete_orders['revenue_units'] = complete_orders['price_units'] * complete_orders['quantity']

    dropped = len(tables.order_details) - len(complete_orders)
    if dropped:
        logger.warning(f"Join dropped {dropped} order detail rows")

    logger.info(f"Joined data has {len(complete_orders)} rows")
    return complete_orders[list(JOINED_COLUMNS)]


def check_for_missing_relationships(tables):
    """
    Summarise orphaned and unused keys across the four tables.
    """
    order_ids_in_orders = set(tables.orders['order_id'])
    order_ids_in_details = set(tables.order_details['order_id'])
    pizza_ids_in_pizzas = set(tables.pizzas['pizza_id'])
    pizza_ids_in_details = set(tables.order_details['pizza_id'])
    type_ids_in_types = set(tables.pizza_types['pizza_type_id'])
    type_ids_in_pizzas = set(tables.pizzas['pizza_type_id'])

    orphaned_details = order_ids_in_details - order_ids_in_orders
    unknown_pizzas = pizza_ids_in_details - pizza_ids_in_pizzas
    unknown_pizza_types = type_ids_in_pizzas - type_ids_in_types
    orders_with_no_details = order_ids_in_orders - order_ids_in_details
    unused_pizzas = pizza_ids_in_pizzas - pizza_ids_in_details

    results = {
        'orphaned_details_count': len(orphaned_details),
        'orphaned_details': sorted(orphaned_details)[:10],
        'unknown_pizzas_count': len(unknown_pizzas),
        'unknown_pizzas': sorted(unknown_pizzas)[:10],
        'unknown_pizza_types_count': len(unknown_pizza_types),
        'unknown_pizza_types': sorted(unknown_pizza_types)[:10],
        'orders_with_no_details_count': len(orders_with_no_details),
        'orders_with_no_details': sorted(orders_with_no_details)[:10],
        'unused_pizzas_count': len(unused_pizzas),
        'unused_pizzas': sorted(unused_pizzas)[:10]
    }

    if results['orphaned_details_count'] > 0:
        logger.warning(f"Found {results['orphaned_details_count']} order ids in order_details with no corresponding order")

    if results['unknown_pizzas_count'] > 0:
        logger.warning(f"Found {results['unknown_pizzas_count']} pizza ids in order_details with no corresponding pizza")

    if results['unknown_pizza_types_count'] > 0:
        logger.warning(f"Found {results['unknown_pizza_types_count']} pizza types referenced by pizzas but not defined")

    if results['orders_with_no_details_count'] > 0:
        logger.warning(f"Found {results['orders_with_no_details_count']} orders with no order details")

    if results['unused_pizzas_count'] > 0:
        logger.info(f"Found {results['unused_pizzas_count']} pizzas that have never been ordered")

    return results
