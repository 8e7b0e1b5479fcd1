"""Query risk policy ORM model."""

from sqlalchemy import JSON, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sqlgate.infrastructure.persistence.database import Base
from sqlgate.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationScopedMixin,
    TimestampMixin,
)


class QueryRiskPolicy(CuidMixin, OrganizationScopedMixin, TimestampMixin, Base):
    """Risk policy. Table: query_risk_policy. NULL organization/connection = global."""

    __tablename__ = "query_risk_policy"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    policy_type: Mapped[str] = mapped_column(String, nullable=False)
    pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    blocked_keywords: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    restricted_tables: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    action: Mapped[str] = mapped_column(String, nullable=False, default="warn")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    connection_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (Index("ix_query_risk_policy_active", "is_active", "risk_score"),)
