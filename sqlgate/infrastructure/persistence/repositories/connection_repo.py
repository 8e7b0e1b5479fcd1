"""Connection repository (read side used by the gate)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.connection import ConnectionWithCredentials
from sqlgate.infrastructure.persistence.models.connection import Connection
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


class ConnectionRepository(BaseRepository[Connection]):
    """Registered target database connections."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Connection)

    async def get_with_credentials(
        self, connection_id: str
    ) -> ConnectionWithCredentials | None:
        c = await self.get_by_id(connection_id)
        if c is None:
            return None
        return ConnectionWithCredentials(
            id=c.id,
            name=c.name,
            db_type=c.db_type,
            host=c.host,
            port=c.port,
            database=c.database,
            username=c.username,
            password=c.password,
        )
