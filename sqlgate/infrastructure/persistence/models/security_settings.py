"""Security settings ORM model. One row per organization."""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sqlgate.application.dtos.query import DEFAULT_BLOCKED_KEYWORDS, DEFAULT_MAX_RESULT_ROWS
from sqlgate.infrastructure.persistence.database import Base
from sqlgate.infrastructure.persistence.models.mixins import TimestampMixin


class SecuritySettings(TimestampMixin, Base):
    """Settings row. Table: security_settings. Keyed by organization id ('default' if none)."""

    __tablename__ = "security_settings"

    organization_id: Mapped[str] = mapped_column(String, primary_key=True)
    enable_sql_injection_check: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    enable_ddl_block: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_dml_block: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_result_rows: Mapped[int | None] = mapped_column(
        Integer, nullable=True, default=DEFAULT_MAX_RESULT_ROWS
    )
    blocked_keywords: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_BLOCKED_KEYWORDS
    )
