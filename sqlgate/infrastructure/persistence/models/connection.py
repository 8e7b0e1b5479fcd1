"""Registered target database connection ORM model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from sqlgate.infrastructure.persistence.database import Base
from sqlgate.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Connection(CuidMixin, TimestampMixin, Base):
    """Connection. Table: db_connection. Password is stored as provided."""

    __tablename__ = "db_connection"

    name: Mapped[str] = mapped_column(String, nullable=False)
    db_type: Mapped[str] = mapped_column(String, nullable=False, default="postgres")
    host: Mapped[str] = mapped_column(String, nullable=False)
    port: Mapped[int] = mapped_column(Integer, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False, default="")
    database: Mapped[str] = mapped_column(String, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
