"""
OrderDesk Modules
=================

Flask blueprint modules for the admin interface.
"""

__all__ = ['orders']
