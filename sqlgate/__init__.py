"""SQL Gate: authorization and query risk policy engine for a SQL console."""
