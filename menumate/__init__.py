"""
                MenuMate Backend

Multi-tenant food-court ordering backend: vendors manage shops,
menus and QR tables, customers order from their table and review
completed orders, and shops receive real-time waiter calls.

Version: 2.0.0
License: MIT
"""

__version__ = "2.0.0"
