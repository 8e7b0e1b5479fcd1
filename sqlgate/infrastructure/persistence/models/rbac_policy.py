"""RBAC policy ORM model: a named, reusable bundle of permission entries."""

from typing import Any

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sqlgate.infrastructure.persistence.database import Base
from sqlgate.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationScopedMixin,
    TimestampMixin,
)


class RbacPolicy(CuidMixin, OrganizationScopedMixin, TimestampMixin, Base):
    """Permission bundle. Table: rbac_policy. is_template marks catalog entries."""

    __tablename__ = "rbac_policy"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # [{"scope", "resource", "action", "is_allow"}, ...]
    permissions: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    # Condition dicts stamped on every permission created from the bundle.
    conditions: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
