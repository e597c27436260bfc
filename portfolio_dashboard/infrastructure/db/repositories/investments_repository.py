"""
Investments Document Repository
Read-modify-write access to the single investors document.
"""

from dataclasses import dataclass, field
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from portfolio_dashboard.domain.errors import ConflictError
from portfolio_dashboard.domain.models import Investor
from portfolio_dashboard.infrastructure.db.models import InvestmentsDocumentModel


@dataclass
class InvestmentsDocument:
    id: int
    version: int
    investors: List[Investor] = field(default_factory=list)


class InvestmentsRepository:
    """Repository for the investments document"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self) -> InvestmentsDocument:
        """
        Prefer a document that already has investors, then any document;
        create an empty one when the table is empty.
        """
        result = await self.session.execute(
            select(InvestmentsDocumentModel)
            .order_by(InvestmentsDocumentModel.id)
            .execution_options(populate_existing=True)
        )
        rows = list(result.scalars().all())
        row = next((r for r in rows if r.investors), None) or (rows[0] if rows else None)

        if row is None:
            row = InvestmentsDocumentModel(investors=[], version=1)
            self.session.add(row)
            await self.session.flush()

        return InvestmentsDocument(
            id=row.id,
            version=row.version,
            investors=[
                Investor.from_document(raw)
                for raw in (row.investors or [])
                if isinstance(raw, dict)
            ],
        )

    async def save(self, document: InvestmentsDocument) -> InvestmentsDocument:
        """
        Write back only if nobody else wrote since ``load``.
        """
        result = await self.session.execute(
            update(InvestmentsDocumentModel)
            .where(
                InvestmentsDocumentModel.id == document.id,
                InvestmentsDocumentModel.version == document.version,
            )
            .values(
                investors=[investor.to_document() for investor in document.investors],
                version=document.version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise ConflictError("Investments were modified concurrently. Please retry.")
        await self.session.commit()
        document.version += 1
        return document

    async def list_investors(self) -> List[Investor]:
        document = await self.load()
        return document.investors
