from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON keys in camelCase; attribute names stay snake_case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------

class ValuePointSchema(CamelModel):
    time: int
    value: float


class HistoryPointSchema(CamelModel):
    time: int
    close: float


class HoldingSchema(CamelModel):
    symbol: str
    name: Optional[str] = None
    id: Optional[str] = None
    allocation_index: Optional[int] = None
    date_invested: Optional[str] = None
    amount_invested: float
    start_price: Optional[float] = None
    current_price: Optional[float] = None
    shares: Optional[float] = None
    current_value: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    history: List[ValuePointSchema] = []


class InvestorValuationSchema(CamelModel):
    name: str
    slug: str
    total_invested: float
    current_value: float
    change: float
    change_percent: Optional[float] = None
    holdings: List[HoldingSchema]
    merged_holdings: List[HoldingSchema]
    value_history: List[ValuePointSchema]


class PortfolioResponse(CamelModel):
    as_of: int
    investors: List[InvestorValuationSchema]
    symbols: List[str]


class QuoteResponse(CamelModel):
    symbol: str
    name: Optional[str] = None
    exchange: Optional[str] = None
    currency: Optional[str] = None
    industry: Optional[str] = None
    price: float
    change: float
    change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None
    timestamp: Optional[int] = None


class HistoryResponse(CamelModel):
    symbol: str
    history: List[HistoryPointSchema]


class SearchResultSchema(CamelModel):
    symbol: str
    description: str
    type: Optional[str] = None


class SearchResponse(CamelModel):
    results: List[SearchResultSchema]


class AllocationSchema(CamelModel):
    id: Optional[str] = None
    symbol: str
    invested: float
    shares: Optional[float] = None
    date_invested: Optional[str] = None


class AllocationResponse(CamelModel):
    ok: bool = True
    allocation: AllocationSchema


class OkResponse(CamelModel):
    ok: bool = True
    slug: Optional[str] = None


class AdminSessionResponse(CamelModel):
    is_admin: bool


# ----------------------------------------------------------------------
# Requests (loose on purpose; the service validates values)
# ----------------------------------------------------------------------

class LoginRequest(CamelModel):
    password: Optional[str] = None


class InvestorNameRequest(CamelModel):
    name: Optional[Any] = None


class AllocationCreateRequest(CamelModel):
    symbol: Optional[Any] = None
    invested: Optional[Any] = None
    amount: Optional[Any] = None
    shares: Optional[Any] = None
    date_invested: Optional[Any] = None


class AllocationUpdateRequest(CamelModel):
    id: Optional[str] = None
    allocation_index: Optional[Any] = None
    symbol: Optional[Any] = None
    invested: Optional[Any] = None
    amount: Optional[Any] = None
    shares: Optional[Any] = None
    date_invested: Optional[Any] = None


class AllocationDeleteRequest(CamelModel):
    id: Optional[str] = None
    allocation_index: Optional[Any] = None
