from .users import User
from .catalog import Product
from .orders import Order, OrderTrackingEvent
from .messages import Message

__all__ = [
    'User',
    'Product',
    'Order', 'OrderTrackingEvent',
    'Message',
]
