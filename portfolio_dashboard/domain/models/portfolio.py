"""
DOMAIN MODELS: VALUATION

Derived structures produced by the valuation engine. Never persisted.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ValuePoint:
    time: int
    value: float


@dataclass
class HoldingValuation:
    symbol: str
    name: Optional[str]
    amount_invested: float
    start_price: Optional[float]
    current_price: Optional[float]
    shares: Optional[float]
    current_value: Optional[float]
    change: Optional[float]
    change_percent: Optional[float]
    date_invested: Optional[str] = None
    id: Optional[str] = None
    allocation_index: Optional[int] = None
    history: List[ValuePoint] = field(default_factory=list)


@dataclass
class InvestorValuation:
    name: str
    slug: str
    total_invested: float
    current_value: float
    change: float
    change_percent: Optional[float]
    holdings: List[HoldingValuation]
    merged_holdings: List[HoldingValuation]
    value_history: List[ValuePoint]
