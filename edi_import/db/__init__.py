"""PostgreSQL access: connection ownership, exclusive lock, queries and procedures."""
