"""
Investor Service
Admin write path for investors and their allocations.

Every operation is a read-modify-write of the investments document.
Validation happens before the document is touched, so rejected calls
leave stored state unchanged.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from portfolio_dashboard.domain.errors import ConflictError, NotFoundError, ValidationError
from portfolio_dashboard.domain.models import (
    Allocation,
    Investor,
    find_allocation_index,
    find_investor_index,
    new_allocation_id,
    slugify,
)
from portfolio_dashboard.infrastructure.db.repositories.investments_repository import (
    InvestmentsDocument,
    InvestmentsRepository,
)
from portfolio_dashboard.utils.time import utc_now

logger = logging.getLogger(__name__)

SymbolValidator = Callable[[str], Awaitable[bool]]


def normalize_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def normalize_symbol(value: Any) -> str:
    return value.strip().upper() if isinstance(value, str) else ""


def normalize_name(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class InvestorService:
    def __init__(self, repository: InvestmentsRepository, symbol_validator: Optional[SymbolValidator] = None):
        self.repository = repository
        self.symbol_validator = symbol_validator

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _load_investor(self, slug: str) -> tuple[InvestmentsDocument, int]:
        document = await self.repository.load()
        index = find_investor_index(document.investors, slug)
        if index == -1:
            raise NotFoundError("Investor not found.")
        return document, index

    async def _validate_symbol(self, symbol: str) -> None:
        valid = False
        if self.symbol_validator is not None:
            valid = await self.symbol_validator(symbol)
        if not valid:
            logger.info("Rejected allocation symbol %s", symbol)
            raise ValidationError("Ticker is not valid. Please enter a real company symbol.")

    @staticmethod
    def _name_taken(investors: List[Investor], name: str, skip_index: int = -1) -> bool:
        lower = name.lower()
        slug = slugify(name)
        for idx, investor in enumerate(investors):
            if idx == skip_index:
                continue
            if (investor.name or "").lower() == lower or investor.slug == slug:
                return True
        return False

    # ------------------------------------------------------------------
    # READS
    # ------------------------------------------------------------------

    async def list_investors(self) -> List[Investor]:
        return await self.repository.list_investors()

    # ------------------------------------------------------------------
    # INVESTORS
    # ------------------------------------------------------------------

    async def create_investor(self, name: Any) -> str:
        name = normalize_name(name)
        logger.info("[admin/investors] create name=%s", name)
        if not name:
            raise ValidationError("Name is required.")

        document = await self.repository.load()
        if self._name_taken(document.investors, name):
            raise ConflictError("Investor with this name already exists.")

        document.investors.append(Investor(name=name, allocations=[]))
        await self.repository.save(document)
        return slugify(name)

    async def rename_investor(self, slug: str, name: Any) -> str:
        name = normalize_name(name)
        logger.info("[admin/investor] rename slug=%s name=%s", slug, name)
        if not name:
            raise ValidationError("Name is required.")

        document, index = await self._load_investor(slug)
        if self._name_taken(document.investors, name, skip_index=index):
            raise ConflictError("Another investor already has this name.")

        document.investors[index].name = name
        await self.repository.save(document)
        return slugify(name)

    async def delete_investor(self, slug: str) -> None:
        logger.info("[admin/investor] delete slug=%s", slug)
        document, index = await self._load_investor(slug)
        del document.investors[index]
        await self.repository.save(document)

    # ------------------------------------------------------------------
    # ALLOCATIONS
    # ------------------------------------------------------------------

    async def add_allocation(
        self,
        slug: str,
        symbol: Any,
        invested: Any,
        shares: Any,
        date_invested: Any = None,
    ) -> Allocation:
        symbol = normalize_symbol(symbol)
        invested_num = normalize_number(invested)
        shares_num = normalize_number(shares)
        if not isinstance(date_invested, str) or not date_invested.strip():
            date_invested = utc_now().isoformat()
        logger.info(
            "[admin/allocations] add slug=%s symbol=%s invested=%s shares=%s date=%s",
            slug, symbol, invested_num, shares_num, date_invested,
        )

        if not symbol or invested_num is None or invested_num <= 0 or shares_num is None or shares_num <= 0:
            raise ValidationError(
                "Symbol, invested amount, and shares are required and must be positive."
            )
        await self._validate_symbol(symbol)

        document, index = await self._load_investor(slug)
        allocation = Allocation(
            symbol=symbol,
            amount_invested=invested_num,
            shares=shares_num,
            date_invested=date_invested.strip(),
            id=new_allocation_id(),
        )
        document.investors[index].allocations.append(allocation)
        await self.repository.save(document)
        return allocation

    async def update_allocation(
        self,
        slug: str,
        allocation_id: Optional[str] = None,
        allocation_index: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Allocation:
        changes = changes or {}
        logger.info(
            "[admin/allocations] update slug=%s id=%s index=%s changes=%s",
            slug, allocation_id, allocation_index, changes,
        )

        symbol = normalize_symbol(changes.get("symbol"))
        invested_raw = changes.get("invested")
        shares_raw = changes.get("shares")
        date_invested = changes.get("date_invested")

        invested_num = None
        if invested_raw is not None:
            invested_num = normalize_number(invested_raw)
            if invested_num is None or invested_num <= 0:
                raise ValidationError("Invested amount must be a positive number.")
        shares_num = None
        if shares_raw is not None:
            shares_num = normalize_number(shares_raw)
            if shares_num is None or shares_num <= 0:
                raise ValidationError("Shares must be a positive number.")

        document, investor_index = await self._load_investor(slug)
        allocations = document.investors[investor_index].allocations
        target_index = find_allocation_index(allocations, allocation_id, allocation_index)
        if target_index == -1:
            raise NotFoundError("Allocation not found.")

        target = allocations[target_index]
        if symbol and symbol != target.symbol:
            await self._validate_symbol(symbol)
            target.symbol = symbol
        if invested_num is not None:
            target.amount_invested = invested_num
        if shares_num is not None:
            target.shares = shares_num
        if isinstance(date_invested, str) and date_invested.strip():
            target.date_invested = date_invested.strip()
        if not target.id:
            target.id = new_allocation_id()

        await self.repository.save(document)
        return target

    async def delete_allocation(
        self,
        slug: str,
        allocation_id: Optional[str] = None,
        allocation_index: Optional[int] = None,
    ) -> None:
        logger.info(
            "[admin/allocations] delete slug=%s id=%s index=%s",
            slug, allocation_id, allocation_index,
        )
        document, investor_index = await self._load_investor(slug)
        allocations = document.investors[investor_index].allocations
        target_index = find_allocation_index(allocations, allocation_id, allocation_index)
        if target_index == -1:
            raise NotFoundError("Allocation not found.")

        del allocations[target_index]
        await self.repository.save(document)
