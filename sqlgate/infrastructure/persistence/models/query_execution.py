"""Query execution ORM model. One row per gated query attempt; write-once."""

from datetime import datetime
from typing import Any

from sqlalchemy import Connection, DateTime, Integer, String, Text, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column
from sqlalchemy.sql import func

from sqlgate.infrastructure.persistence.database import Base
from sqlgate.infrastructure.persistence.models.mixins import CuidMixin


class QueryExecution(CuidMixin, Base):
    """Execution record. Table: query_execution."""

    __tablename__ = "query_execution"

    raw_query: Mapped[str] = mapped_column(Text, nullable=False)
    executed_by: Mapped[str] = mapped_column(String, nullable=False, index=True)
    connection_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    connection_name: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, index=True)
    row_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocked_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    blocked_by_policy_id: Mapped[str | None] = mapped_column(String, nullable=True)
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )


@event.listens_for(QueryExecution, "before_update")
def _prevent_execution_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: QueryExecution
) -> None:
    """Execution records are write-once."""
    raise ValueError("Query execution records are immutable and cannot be updated.")
