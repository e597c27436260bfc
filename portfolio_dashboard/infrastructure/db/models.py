"""
Database Models (SQLAlchemy ORM)
The whole investor list lives in one JSON document row.
"""

from sqlalchemy import Column, DateTime, Integer, JSON
from sqlalchemy.sql import func

from portfolio_dashboard.infrastructure.db.database import Base


class InvestmentsDocumentModel(Base):
    """Investors and their allocations, stored as one document"""
    __tablename__ = "investment_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investors = Column(JSON, nullable=False, default=list)
    # Optimistic concurrency token, bumped on every write
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
