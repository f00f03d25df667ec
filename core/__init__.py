"""Core module - configuration and observability shared by every layer.

The reconciliation engine itself lives in /reconciliation/ and the source
parsing in /sources/. Nothing in here knows about maps or invoices.
"""

__version__ = "1.0.0"
