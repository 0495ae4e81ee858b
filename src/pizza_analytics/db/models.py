"""
Database models for the four pizza sales source tables.
"""
from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class OrderRow(Base):
    """Orders placed, one row per order."""
    __tablename__ = 'orders'

    order_id = Column(Integer, primary_key=True, autoincrement=False)
    order_date = Column(Date, nullable=False)
    order_time = Column(Time, nullable=False)


class PizzaTypeRow(Base):
    """Pizza recipes and the menu category they belong to."""
    __tablename__ = 'pizza_types'

    pizza_type_id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)


class PizzaRow(Base):
    """Sellable pizzas: a pizza type in one size at one price."""
    __tablename__ = 'pizzas'

    pizza_id = Column(String(50), primary_key=True)
    pizza_type_id = Column(String(50), ForeignKey('pizza_types.pizza_type_id'), nullable=False)
    size = Column(String(10))
    price = Column(Numeric(10, 4), nullable=False)


class OrderDetailRow(Base):
    """Order lines: a quantity of one pizza within an order."""
    __tablename__ = 'order_details'

    order_details_id = Column(Integer, primary_key=True, autoincrement=False)
    order_id = Column(Integer, ForeignKey('orders.order_id'), nullable=False)
    pizza_id = Column(String(50), ForeignKey('pizzas.pizza_id'), nullable=False)
    quantity = Column(Integer, nullable=False)
