"""Application DTOs (no dependency on ORM or HTTP)."""
