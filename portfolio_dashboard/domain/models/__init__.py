"""
Domain Models Package
Export all domain entities
"""

from .investor import (
    Allocation,
    Investor,
    find_allocation_index,
    find_investor_index,
    new_allocation_id,
    slugify,
)
from .market import (
    HistoryPoint,
    Profile,
    Quote,
    SearchResult,
    SymbolHistory,
)
from .portfolio import (
    HoldingValuation,
    InvestorValuation,
    ValuePoint,
)

__all__ = [
    # Persisted
    "Allocation",
    "Investor",
    "find_allocation_index",
    "find_investor_index",
    "new_allocation_id",
    "slugify",

    # Market data
    "HistoryPoint",
    "Profile",
    "Quote",
    "SearchResult",
    "SymbolHistory",

    # Valuation
    "HoldingValuation",
    "InvestorValuation",
    "ValuePoint",
]
