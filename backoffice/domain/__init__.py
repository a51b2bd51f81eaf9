"""
Domain layer for the fulfillment back office.

This layer contains the pedido and customer entities and the Money value
object used to compute order totals.
"""
