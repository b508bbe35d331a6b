"""
OrderDesk Core
==============

Core utilities and shared functionality for OrderDesk modules.
"""

from .config import Config, get_config_value
from .database import Database
from .exceptions import OrderDeskError, SetupError, StoreError, MutationError, DocumentNotFound
from .logging_service import LoggingService, db_log

__all__ = [
    'Config', 'get_config_value', 'Database',
    'OrderDeskError', 'SetupError', 'StoreError', 'MutationError', 'DocumentNotFound',
    'LoggingService', 'db_log',
]
