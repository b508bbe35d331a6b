"""
Orders Admin Module
===================

Admin interface for order fulfilment.

Provides:
- Live join of orders with their users and delivery addresses
- Pending and delivered order tables
- Mark-as-delivered with operator confirmation
"""

from flask import Blueprint

orders_bp = Blueprint(
    'orders_admin',
    __name__,
    url_prefix='/admin/orders',
    template_folder='templates'
)

from . import routes
from .board import OrderBoard
from .gateway import MutationGateway
from .join import enrich_orders, format_order_date
from .subscriptions import SubscriptionManager

__all__ = ['orders_bp', 'OrderBoard', 'MutationGateway', 'SubscriptionManager',
           'enrich_orders', 'format_order_date']
