"""Reconciliation - joins the six exports into one record per map.

Modules:
- normalize: key normalization and field coercion
- invoices: invoice classification and financial sums
- maps: per-map reconciliation
- aggregate: category counts and the future label
- filters: category/search filtering of reconciled maps
- engine: the full pass (``run_pass`` / ``reconcile``)
"""
