"""
VALUATION ENGINE

RESPONSIBILITIES:
- Resolve start price, share count and current price per allocation
- Compute per-holding value, change and percent change
- Aggregate holdings into investor totals and a merged value series

RULES:
❌ No market data fetching
❌ No persistence
✅ Deterministic given its inputs
✅ Unresolved fields stay None; totals fall back to cost basis
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from portfolio_dashboard.domain.models import (
    Allocation,
    HistoryPoint,
    HoldingValuation,
    Investor,
    InvestorValuation,
    Profile,
    Quote,
    SymbolHistory,
    ValuePoint,
)
from portfolio_dashboard.utils.time import to_epoch_seconds, utc_now

logger = logging.getLogger(__name__)


def start_price_for_date(history: Sequence[HistoryPoint], start_ts: int) -> Optional[float]:
    """
    Close of the first point at or after ``start_ts``.
    Falls back to the earliest point when the purchase is newer than the series.
    """
    if not history:
        return None
    for point in history:
        if point.time >= start_ts:
            return point.close
    return history[0].close


def implied_cost_basis(allocation: Allocation) -> Optional[float]:
    """Per-share price recorded at write time (amount / shares)."""
    if allocation.shares and allocation.shares > 0 and allocation.amount_invested > 0:
        return allocation.amount_invested / allocation.shares
    return None


def percent_change(change: Optional[float], invested: float) -> Optional[float]:
    if change is None or not invested:
        return None
    return (change / invested) * 100.0


def _baseline_prices(investors: Iterable[Investor]) -> Dict[str, float]:
    """First recorded cost basis per symbol, across all investors."""
    baselines: Dict[str, float] = {}
    for investor in investors:
        for allocation in investor.allocations:
            symbol = allocation.symbol.upper()
            price = implied_cost_basis(allocation)
            if price is not None and symbol not in baselines:
                baselines[symbol] = price
    return baselines


def _sum_series(series: Iterable[Iterable[ValuePoint]]) -> List[ValuePoint]:
    """Sum values keyed by exact timestamp. No interpolation across grids."""
    timeline: Dict[int, float] = {}
    for points in series:
        for point in points:
            timeline[point.time] = timeline.get(point.time, 0.0) + point.value
    return [ValuePoint(time=t, value=v) for t, v in sorted(timeline.items())]


def value_holding(
    allocation: Allocation,
    history: Sequence[HistoryPoint],
    quote: Optional[Quote],
    profile: Optional[Profile],
    baseline_price: Optional[float] = None,
    now: Optional[datetime] = None,
    allocation_index: Optional[int] = None,
) -> HoldingValuation:
    symbol = allocation.symbol.upper()
    name = profile.name if profile and profile.name else symbol
    amount = allocation.amount_invested

    purchase_ts = to_epoch_seconds(allocation.date_invested, default=now)
    start_price = start_price_for_date(history, purchase_ts)
    if start_price is None:
        start_price = implied_cost_basis(allocation)
    if start_price is None:
        start_price = baseline_price

    if allocation.shares and allocation.shares > 0:
        shares: Optional[float] = allocation.shares
    elif start_price and start_price > 0:
        shares = amount / start_price
    else:
        shares = None

    if quote is not None and quote.price and quote.price > 0:
        current_price: Optional[float] = quote.price
    elif history:
        current_price = history[-1].close
    else:
        current_price = start_price

    holding = HoldingValuation(
        symbol=symbol,
        name=name,
        amount_invested=amount,
        start_price=start_price,
        current_price=current_price,
        shares=shares,
        current_value=None,
        change=None,
        change_percent=None,
        date_invested=allocation.date_invested,
        id=allocation.id,
        allocation_index=allocation_index,
    )

    if shares is None or shares <= 0:
        holding.shares = None
        return holding

    holding.history = [
        ValuePoint(time=point.time, value=point.close * shares) for point in history
    ]

    # Without a price the holding stays unresolved; investor totals use cost basis.
    if current_price is None:
        logger.debug("No price resolved for %s; value left unresolved", symbol)
        return holding

    current_value = shares * current_price
    change = current_value - amount
    holding.current_value = current_value
    holding.change = change
    holding.change_percent = percent_change(change, amount)
    return holding


def merge_holdings(holdings: Sequence[HoldingValuation]) -> List[HoldingValuation]:
    """
    Collapse holdings of the same symbol into one display row.

    Unresolved values count at cost basis, like the investor totals. Shares
    are only summed when every constituent has them. A row built from more
    than one allocation carries no id, index, date or start price.
    """
    by_symbol: "OrderedDict[str, HoldingValuation]" = OrderedDict()
    series: Dict[str, List[List[ValuePoint]]] = {}

    for holding in holdings:
        current = holding.current_value if holding.current_value is not None else holding.amount_invested
        shares = holding.shares if holding.shares else None
        existing = by_symbol.get(holding.symbol)

        if existing is None:
            by_symbol[holding.symbol] = replace(
                holding,
                current_value=current,
                shares=shares,
                history=list(holding.history),
            )
            series[holding.symbol] = [holding.history]
            continue

        total_invested = existing.amount_invested + holding.amount_invested
        total_current = (existing.current_value or 0.0) + current

        existing.amount_invested = total_invested
        existing.current_value = total_current
        if existing.shares is None or shares is None:
            existing.shares = None
        else:
            existing.shares = existing.shares + shares
        existing.id = None
        existing.allocation_index = None
        existing.date_invested = None
        existing.start_price = None
        existing.change = total_current - total_invested
        existing.change_percent = percent_change(existing.change, total_invested)
        series[holding.symbol].append(holding.history)

    merged: List[HoldingValuation] = []
    for symbol, holding in by_symbol.items():
        if len(series[symbol]) > 1:
            holding.history = _sum_series(series[symbol])
        if holding.change is None:
            current = holding.current_value if holding.current_value is not None else holding.amount_invested
            holding.change = current - holding.amount_invested
            holding.change_percent = percent_change(holding.change, holding.amount_invested)
        merged.append(holding)
    return merged


def value_investor(
    investor: Investor,
    symbol_histories: Mapping[str, SymbolHistory],
    symbol_quotes: Mapping[str, Optional[Quote]],
    symbol_profiles: Mapping[str, Optional[Profile]],
    baselines: Optional[Mapping[str, float]] = None,
    now: Optional[datetime] = None,
) -> InvestorValuation:
    baselines = baselines or {}
    holdings: List[HoldingValuation] = []
    for index, allocation in enumerate(investor.allocations):
        symbol = allocation.symbol.upper()
        holdings.append(
            value_holding(
                allocation,
                history=symbol_histories.get(symbol) or [],
                quote=symbol_quotes.get(symbol),
                profile=symbol_profiles.get(symbol),
                baseline_price=baselines.get(symbol),
                now=now,
                allocation_index=index,
            )
        )

    total_invested = sum(h.amount_invested for h in holdings)
    current_value = sum(
        h.current_value if h.current_value is not None else h.amount_invested
        for h in holdings
    )
    change = current_value - total_invested

    return InvestorValuation(
        name=investor.name,
        slug=investor.slug,
        total_invested=total_invested,
        current_value=current_value,
        change=change,
        change_percent=percent_change(change, total_invested),
        holdings=holdings,
        merged_holdings=merge_holdings(holdings),
        value_history=_sum_series(h.history for h in holdings),
    )


def valuate(
    investors: Sequence[Investor],
    symbol_histories: Mapping[str, SymbolHistory],
    symbol_quotes: Mapping[str, Optional[Quote]],
    symbol_profiles: Mapping[str, Optional[Profile]],
    now: Optional[datetime] = None,
) -> List[InvestorValuation]:
    """
    Value every investor from stored allocations plus per-symbol market data.

    Histories must be ascending by time. Missing symbols in any mapping are
    treated as unavailable data, never as errors.
    """
    now = now or utc_now()
    baselines = _baseline_prices(investors)
    return [
        value_investor(
            investor,
            symbol_histories,
            symbol_quotes,
            symbol_profiles,
            baselines=baselines,
            now=now,
        )
        for investor in investors
    ]
