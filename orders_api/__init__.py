"""
Orders API.

Order aggregates with a status state machine and pessimistic per-order
locking, served over FastAPI on PostgreSQL.
"""

__version__ = "1.0.0"
