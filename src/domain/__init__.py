"""Domain models and pure calculators for the portfolio analytics engine.

Entities are pydantic models read from the storage layer; nothing in this package
writes back. Report aggregations that combine several entity kinds live in ``utils``.
"""

__all__ = [
    "errors",
    "filters",
    "inventory",
    "ledger",
    "lot_selection",
    "property",
    "property_financials",
    "storage",
    "valuation",
]
