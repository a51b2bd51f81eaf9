"""
Order services package for the Shopify order ingestion pipeline.

This package contains the collaborators of the order worker
(validation, supplier assignment and notifications), each behind
its own protocol so the worker can be tested in isolation.
"""
