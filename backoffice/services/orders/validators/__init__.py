"""
Validator services for validating incoming Shopify orders.
"""

from .order_validator import OrderValidator

__all__ = ["OrderValidator"]
