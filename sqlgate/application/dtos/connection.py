"""DTOs for registered target database connections."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConnectionWithCredentials:
    """Connection parameters handed to the database connector (never returned over HTTP)."""

    id: str
    name: str
    db_type: str
    host: str
    port: int
    database: str
    username: str
    password: str = ""

    def __repr__(self) -> str:
        return (
            f"ConnectionWithCredentials(id={self.id!r}, name={self.name!r}, "
            f"db_type={self.db_type!r}, host={self.host!r}, port={self.port!r}, "
            f"database={self.database!r}, username={self.username!r}, password='***')"
        )
