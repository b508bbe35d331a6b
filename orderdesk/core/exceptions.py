"""
OrderDesk Exceptions
====================

Errors raised across the store, subscription and mutation layers.
A join miss is not an error and has no exception here.
"""


class OrderDeskError(Exception):
    """Base class for all OrderDesk errors"""


class SetupError(OrderDeskError):
    """Opening the live subscriptions failed"""


class StoreError(OrderDeskError):
    """Reading a collection from the document store failed"""


class MutationError(OrderDeskError):
    """A write to the document store was rejected"""

    def __init__(self, message, collection=None, doc_id=None):
        super().__init__(message)
        self.collection = collection
        self.doc_id = doc_id


class DocumentNotFound(MutationError):
    """The document targeted by a write does not exist"""
