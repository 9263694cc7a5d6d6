"""
SQLAlchemy ORM 모델 패키지
- 모든 모델을 여기서 import하여 Base.metadata에 등록한다.
"""

from yuandi.models.product import Product
from yuandi.models.inventory_movement import InventoryMovement
from yuandi.models.order import Order, OrderItem
from yuandi.models.order_sequence import OrderSequenceCounter
from yuandi.models.event_log import EventLog

__all__ = [
    "Product",
    "InventoryMovement",
    "Order",
    "OrderItem",
    "OrderSequenceCounter",
    "EventLog",
]
