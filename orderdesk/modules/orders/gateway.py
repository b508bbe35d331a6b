"""
Order Mutation Gateway
======================

Marks an order delivered: asks the operator to confirm, writes the status
upstream, then records the write locally so the view reflects it before the
next snapshot arrives.
"""

import logging

from orderdesk.core.logging_service import LoggingService, db_log
from .join import STATUS_DELIVERED

logger = logging.getLogger(__name__)

CONFIRM_PROMPT = "Are you sure you want to mark this order as delivered?"


def _confirmed(confirm):
    if callable(confirm):
        return bool(confirm())
    return bool(confirm)


class MutationGateway:
    """Single-field status writes against the orders collection"""

    def __init__(self, store, board=None, collection='orders'):
        self.store = store
        self.board = board
        self.collection = collection

    def mark_delivered(self, order_id, confirm, user_id=None):
        """
        Set an order's status to Delivered.

        Args:
            order_id: id of the order document
            confirm: bool, or a callable asking the operator (returns bool)
            user_id: optional admin identifier for the audit log

        Returns:
            True if the write was made, False if the operator declined.

        Raises:
            DocumentNotFound: the order does not exist
            MutationError: the store rejected the write
        """
        if not _confirmed(confirm):
            logger.info(f"Mark delivered declined for order {order_id}")
            return False

        try:
            self.store.update_field(self.collection, order_id, 'status', STATUS_DELIVERED)
        except Exception as e:
            logger.error(f"Failed to mark order {order_id} delivered: {e}")
            db_log('error', 'orders', f"Failed to mark order {order_id} delivered", {'error': str(e)})
            raise

        if self.board is not None:
            self.board.apply_write_intent(order_id, {'status': STATUS_DELIVERED})

        LoggingService.log_user_action('orders', f"Marked order {order_id} delivered", user_id,
                                       {'order_id': order_id})
        return True
