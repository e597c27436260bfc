"""
DOMAIN MODELS: INVESTORS & ALLOCATIONS

Persisted shapes for the investments document.
No database access. No market data fetching.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Lowercase the trimmed name and hyphenate whitespace runs."""
    return _WHITESPACE.sub("-", (name or "").strip().lower())


def new_allocation_id() -> str:
    return str(uuid.uuid4())


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


@dataclass
class Allocation:
    """
    One purchase record.

    ``shares`` is None when only the invested amount was recorded; the
    valuation engine then derives it from the start price.
    """
    symbol: str
    amount_invested: float
    shares: Optional[float] = None
    date_invested: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_document(cls, raw: Dict[str, Any]) -> "Allocation":
        # Legacy records carry "amount" instead of "invested"
        invested = _as_number(raw.get("invested"))
        if invested is None:
            invested = _as_number(raw.get("amount"))
        shares = _as_number(raw.get("shares"))
        date_invested = raw.get("dateInvested")
        if date_invested is not None and not isinstance(date_invested, str):
            # datetime values coming straight from a driver
            date_invested = date_invested.isoformat()
        return cls(
            symbol=str(raw.get("symbol") or "").strip().upper(),
            amount_invested=invested or 0.0,
            shares=shares,
            date_invested=date_invested or None,
            id=raw.get("id"),
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "symbol": self.symbol,
            "invested": self.amount_invested,
            "shares": self.shares,
            "dateInvested": self.date_invested,
        }
        if self.id:
            doc["id"] = self.id
        return doc


@dataclass
class Investor:
    name: str
    allocations: List[Allocation] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return slugify(self.name)

    def matches(self, slug_or_name: Optional[str]) -> bool:
        """True when the slug (or the plain name, case-insensitive) points here."""
        if not slug_or_name:
            return False
        own = (self.name or "").strip().lower()
        if not own:
            return False
        target = slug_or_name.strip().lower()
        return slugify(own) == target or own == target

    @classmethod
    def from_document(cls, raw: Dict[str, Any]) -> "Investor":
        return cls(
            name=str(raw.get("name") or "").strip(),
            allocations=[
                Allocation.from_document(a)
                for a in (raw.get("allocations") or [])
                if isinstance(a, dict)
            ],
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "allocations": [a.to_document() for a in self.allocations],
        }


def find_investor_index(investors: List[Investor], slug: Optional[str]) -> int:
    for idx, investor in enumerate(investors):
        if investor.matches(slug):
            return idx
    return -1


def find_allocation_index(
    allocations: List[Allocation],
    allocation_id: Optional[str] = None,
    index: Optional[int] = None,
) -> int:
    """Resolve by id first, then by position."""
    if allocation_id:
        for idx, allocation in enumerate(allocations):
            if allocation.id == allocation_id:
                return idx
    if index is not None and 0 <= index < len(allocations):
        return index
    return -1
